from setuptools import setup, find_packages

setup(
    name="hunk_review",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pyyaml",
        "rich",
        "textual",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "hunk-review=hunk_review.cli:main",
        ],
    },
    author="Uday Kanth",
    description="Hunk-by-hunk review of proposed edits to text documents.",
)
