"""Detect PDF regenerations that only changed their timestamps."""

from __future__ import annotations

import difflib

# Regenerating a PDF rewrites the info dictionary near the top of the file,
# which always lands in this hunk.
TIMESTAMP_HUNK_HEADER = b"@@ -5,8 +5,8 @@"
MOD_DATE = b"/ModDate"
CREATION_DATE = b"/CreationDate"


def split_lines(data: bytes) -> list[bytes]:
    """Split on LF only, keeping line endings."""
    lines = [line + b"\n" for line in data.split(b"\n")]
    lines[-1] = lines[-1][:-1]
    if not lines[-1]:
        lines.pop()
    return lines


def unified_diff(existing: bytes, new: bytes) -> list[bytes]:
    """Unified diff with three lines of context."""
    return list(
        difflib.diff_bytes(
            difflib.unified_diff,
            split_lines(existing),
            split_lines(new),
            n=3,
        )
    )


def _hunks(diff: list[bytes]) -> list[tuple[bytes, list[bytes]]]:
    hunks: list[tuple[bytes, list[bytes]]] = []
    for line in diff:
        if line.startswith(b"@@"):
            hunks.append((line.rstrip(b"\r\n"), []))
        elif hunks:
            hunks[-1][1].append(line)
    return hunks


def is_timestamp_only_change(
    existing: bytes,
    new: bytes,
    require_creation_date_replacement: bool = False,
) -> bool:
    """Check whether two files differ only in their PDF timestamps.

    The change qualifies when the diff is a single hunk at
    ``TIMESTAMP_HUNK_HEADER`` that removes a ``/ModDate`` and a
    ``/CreationDate`` line, removes nothing else, and adds a ``/ModDate`` line.

    Args:
        existing: Bytes currently stored
        new: Bytes about to be written
        require_creation_date_replacement: Also require an added
            ``/CreationDate`` line, and reject any added line that is not a
            timestamp.

    Returns:
        True if writing ``new`` would only refresh timestamps.
    """
    hunks = _hunks(unified_diff(existing, new))
    if len(hunks) != 1:
        return False

    header, body = hunks[0]
    if header != TIMESTAMP_HUNK_HEADER:
        return False

    removed = [line[1:] for line in body if line.startswith(b"-")]
    added = [line[1:] for line in body if line.startswith(b"+")]

    if not all(line.startswith((MOD_DATE, CREATION_DATE)) for line in removed):
        return False
    if not any(line.startswith(MOD_DATE) for line in removed):
        return False
    if not any(line.startswith(CREATION_DATE) for line in removed):
        return False
    if not any(line.startswith(MOD_DATE) for line in added):
        return False

    if require_creation_date_replacement:
        if not all(line.startswith((MOD_DATE, CREATION_DATE)) for line in added):
            return False
        if not any(line.startswith(CREATION_DATE) for line in added):
            return False

    return True
