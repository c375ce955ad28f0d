"""Loading of the bundled baseline blocklist.

The baseline list ships as ``modfilter/data/blocked_terms.txt`` and is read
once per process; projects override it through ``ClientConfig.blocked_terms``.
"""

from __future__ import annotations

from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Iterable, Tuple

from modfilter.util.logger import get_logger

logger = get_logger("blocked_terms")

BLOCKED_TERMS_RESOURCE = "blocked_terms.txt"


def parse_blocked_terms(lines: Iterable[str]) -> Tuple[str, ...]:
    """Return the candidate terms from newline-delimited term-file content.

    Surrounding whitespace is trimmed, blank lines and ``#`` comments are skipped.
    """
    terms = []
    for line in lines:
        trimmed = line.strip()
        if trimmed and not trimmed.startswith("#"):
            terms.append(trimmed)
    return tuple(terms)


def load_blocked_terms_file(path: str | Path) -> Tuple[str, ...]:
    """Read a term file in the bundled format from disk."""
    with Path(path).open("r", encoding="utf-8") as handle:
        terms = parse_blocked_terms(handle)
    logger.info("[BLOCKLIST] Loaded %d blocked terms from %s", len(terms), path)
    return terms


@lru_cache(maxsize=None)
def default_blocked_terms() -> Tuple[str, ...]:
    """Return the baseline blocked terms bundled with the package."""
    try:
        content = resources.files("modfilter.data").joinpath(BLOCKED_TERMS_RESOURCE).read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning("[BLOCKLIST] %s not found in package data", BLOCKED_TERMS_RESOURCE)
        return ()

    if not content.strip():
        logger.warning("[BLOCKLIST] %s is empty", BLOCKED_TERMS_RESOURCE)
        return ()

    terms = parse_blocked_terms(content.splitlines())
    logger.info("[BLOCKLIST] Loaded %d blocked terms from %s", len(terms), BLOCKED_TERMS_RESOURCE)
    return terms
