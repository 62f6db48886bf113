"""
Review metrics — records the outcome of every closed review session in a
JSONL log file.
"""

from __future__ import annotations

import json
import logging
import os
from collections import Counter
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

_METRICS_DIR = ".hunkreview"
_METRICS_FILE = "review_metrics.jsonl"


def _metrics_path(metrics_dir: str | None = None) -> str:
    """Return the absolute path to the metrics file."""
    base = metrics_dir or os.path.join(os.getcwd(), _METRICS_DIR)
    return os.path.join(base, _METRICS_FILE)


def log_review_metric(data: dict, metrics_dir: str | None = None) -> None:
    """Append a single review outcome to the JSONL log.

    Parameters
    ----------
    data:
        Fields to log (document, outcome, hunks_accepted, hunks_rejected, ...).
    metrics_dir:
        Directory holding the log.  Defaults to ``.hunkreview`` under CWD.
    """
    path = _metrics_path(metrics_dir)

    entry = {"timestamp": datetime.now(timezone.utc).isoformat()}
    entry.update(data)

    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")
    except OSError as exc:
        logger.warning("[Review] Failed to write metrics: %s", exc)


def read_review_stats(
    last_n: int = 50,
    metrics_dir: str | None = None,
) -> dict:
    """Compute rolling statistics from the metrics log.

    Returns
    -------
    dict
        ``total_reviews``, ``hunk_accept_rate``, ``hunk_reject_rate``,
        ``avg_decisions`` and ``outcomes`` (percentage per outcome).
    """
    path = _metrics_path(metrics_dir)

    entries: list[dict] = []
    if os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    line = line.strip()
                    if line:
                        try:
                            entries.append(json.loads(line))
                        except json.JSONDecodeError:
                            continue
        except OSError as exc:
            logger.warning("[Review] Failed to read metrics: %s", exc)

    entries = entries[-last_n:]

    if not entries:
        return {
            "total_reviews": 0,
            "hunk_accept_rate": 0.0,
            "hunk_reject_rate": 0.0,
            "avg_decisions": 0.0,
            "outcomes": {},
        }

    total = len(entries)
    accepted = sum(e.get("hunks_accepted", 0) for e in entries)
    rejected = sum(e.get("hunks_rejected", 0) for e in entries)
    decided = accepted + rejected
    outcomes = Counter(e.get("outcome", "unknown") for e in entries)

    return {
        "total_reviews": total,
        "hunk_accept_rate": accepted / decided * 100 if decided else 0.0,
        "hunk_reject_rate": rejected / decided * 100 if decided else 0.0,
        "avg_decisions": decided / total,
        "outcomes": {
            outcome: count / total * 100
            for outcome, count in outcomes.most_common()
        },
    }
