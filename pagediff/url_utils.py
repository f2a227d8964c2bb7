"""Shared URL utilities — normalize targets and derive stable artifact names."""

from __future__ import annotations

import hashlib
import logging
import re
from typing import Iterable
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"\W+")


def normalize_target(value: str) -> str:
    """Reduce a full URL or bare path to a path with a leading slash."""
    value = value.strip()
    parsed = urlparse(value)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        path = parsed.path or "/"
        if parsed.query:
            path += "?" + parsed.query
        return path
    return value if value.startswith("/") else f"/{value}"


def sanitize_target(target: str) -> str:
    """Generate a filesystem-safe name for a target, stable across runs."""
    return _NON_WORD.sub("_", target)


def artifact_names(targets: Iterable[str]) -> dict[str, str]:
    """Map each target to a file name that no other target in the run shares.

    The first target to claim a sanitized name keeps it; a later target that
    sanitizes to a taken name gets a short hash of itself appended.
    """
    names: dict[str, str] = {}
    taken: set[str] = set()
    for target in targets:
        if target in names:
            continue
        base = sanitize_target(target)
        name = base
        if name in taken:
            digest = hashlib.sha1(target.encode()).hexdigest()[:8]
            name = f"{base}_{digest}"
            suffix = 2
            while name in taken:
                name = f"{base}_{digest}_{suffix}"
                suffix += 1
            logger.warning("Artifact name %s is already used, saving %s as %s", base, target, name)
        names[target] = name
        taken.add(name)
    return names


def join_url(base_url: str, target: str) -> str:
    return f"{base_url.rstrip('/')}{normalize_target(target)}"


def environment_label(base_url: str) -> str:
    """Guess a human label for the environment a base URL points at."""
    host = (urlparse(base_url).netloc or base_url).lower()
    if host.startswith(("localhost", "127.0.0.1")):
        return "local"
    if host.startswith("dev.") or ".dev." in host:
        return "Dev"
    if host.startswith("stage.") or ".stage." in host or host.startswith("staging."):
        return "Stage"
    return "Prod"
