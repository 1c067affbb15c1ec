"""Read per-crate sizes from ``cargo bloat -n0 --message-format=json --crates``."""

from __future__ import annotations

import json
import logging

from cratezoom.errors import MalformedInputError

logger = logging.getLogger(__name__)


def parse_size_report(output: str) -> dict[str, int]:
    """Return a crate short name -> size in bytes map."""
    try:
        data = json.loads(output)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"cargo bloat JSON parse error: {e}") from e

    crates = data.get("crates") if isinstance(data, dict) else None
    if not isinstance(crates, list):
        raise MalformedInputError('cargo bloat output has no "crates" array')

    sizes: dict[str, int] = {}
    for entry in crates:
        name = entry.get("name") if isinstance(entry, dict) else None
        size = entry.get("size") if isinstance(entry, dict) else None
        if not isinstance(name, str):
            raise MalformedInputError(f"crate entry without name: {entry!r}")
        # bool is an int subclass
        if not isinstance(size, int) or isinstance(size, bool) or size < 0:
            raise MalformedInputError(f"invalid size for crate {name!r}: {size!r}")
        sizes[name] = size

    logger.debug(
        "cargo bloat: %d crates, %d bytes total",
        len(sizes),
        sum(sizes.values()),
    )
    return sizes
