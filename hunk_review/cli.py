"""
CLI entry point — review a proposed version of a file hunk by hunk.
"""

import argparse
import logging
import os
import sys
from datetime import datetime

from .config import Config
from .diff_display import console_review, textual_review
from .editing.change_merger import OperationKind, ProposedChange
from .editing.metrics import read_review_stats
from .review.coordinator import ReviewCoordinator, ReviewOutcome
from .review.documents import FileDocumentStore


class ReviewError(Exception):
    """Raised when the CLI cannot set up a review."""


def setup_logger(log_dir: str = ".hunkreview/logs") -> logging.Logger:
    """Creates a file logger. All verbose output goes here."""
    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"review_{timestamp}.log")

    logger = logging.getLogger("hunk_review")
    logger.setLevel(logging.DEBUG)

    # File handler captures everything
    fh = logging.FileHandler(log_file, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(fh)

    return logger


def _read_text(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
            return f.read()
    except OSError as exc:
        raise ReviewError(f"Cannot read {path}: {exc}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="hunk-review — accept or reject proposed edits hunk by hunk",
    )
    parser.add_argument("original", nargs="?",
                        help="File to review (created if it does not exist)")
    parser.add_argument("target", nargs="?",
                        help="File holding the proposed content")
    parser.add_argument("--base-dir", default=".",
                        help="Directory documents are resolved against")
    parser.add_argument("--context", type=int, default=None,
                        help="Context lines around each change (default: from config)")
    parser.add_argument("--auto", choices=["accept", "reject"], default=None,
                        help="Non-interactive: accept or reject every hunk")
    parser.add_argument("--console", action="store_true",
                        help="Use the line-based console reviewer instead of the TUI")
    parser.add_argument("--no-persist", action="store_true",
                        help="Do not keep the session on disk between runs")
    parser.add_argument("--config", default=None,
                        help="Path to .hunkreview.yaml config file")
    parser.add_argument("--stats", action="store_true",
                        help="Print review statistics and exit")
    return parser


def _print_stats(cfg: Config) -> None:
    stats = read_review_stats(metrics_dir=cfg.METRICS_DIR)
    print(f"  Reviews:        {stats['total_reviews']}")
    print(f"  Hunks accepted: {stats['hunk_accept_rate']:.1f}%")
    print(f"  Hunks rejected: {stats['hunk_reject_rate']:.1f}%")
    for outcome, pct in stats["outcomes"].items():
        print(f"  {outcome:<15} {pct:.1f}%")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # ── 0. Load config ──
    cfg = Config.load(args.config)
    if args.context is not None:
        cfg.CONTEXT_LINES = args.context
    if args.no_persist:
        cfg.PERSIST_SESSIONS = False

    if args.stats:
        _print_stats(cfg)
        return 0

    if not args.original or not args.target:
        parser.error("original and target are required")

    log = setup_logger(cfg.LOG_DIR)

    # ── 1. Register the proposal ──
    documents = FileDocumentStore(args.base_dir)
    outcomes: list[ReviewOutcome] = []
    coordinator = ReviewCoordinator.from_config(cfg, documents, on_closed=outcomes.append)

    identity = os.path.relpath(
        os.path.abspath(args.original), os.path.abspath(args.base_dir),
    )
    try:
        target = _read_text(args.target)
    except ReviewError as exc:
        print(f"  Error: {exc}", file=sys.stderr)
        return 1

    existing = documents.find(identity)
    coordinator.submit(ProposedChange(
        operation=OperationKind.OVERWRITE if existing else OperationKind.CREATE,
        document_identity=identity,
        original_content=existing.content if existing else "",
        target_content=target,
    ))

    # ── 2. Enter review ──
    document = coordinator.ensure_document(identity)
    if document is None:
        print(f"  Error: cannot open {identity}", file=sys.stderr)
        return 1
    session = coordinator.enter_review(document)
    log.info("Reviewing %s against %s", identity, args.target)

    if not coordinator.pending_hunks(document):
        coordinator.close_review(session)
        print("  No changes to review.")
        return 0

    # ── 3. Decide ──
    if args.auto == "accept":
        coordinator.accept_all(document)
    elif args.auto == "reject":
        coordinator.reject_all(document)
    elif args.console:
        console_review(coordinator, document)
    else:
        textual_review(coordinator, document)

    for outcome in outcomes:
        print(
            f"  {outcome.identity}: {outcome.outcome} "
            f"({outcome.hunks_accepted} accepted, {outcome.hunks_rejected} rejected)"
        )
    if not outcomes:
        print(f"  Review of {identity} left open; run again to resume.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
