from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Union

from .errors import SerializationError


def resolve_path(raw: Optional[str]) -> Optional[Path]:
    """Expand a CLI path argument. "-" and None mean stdin/stdout."""
    if raw is None or raw == "-":
        return None
    return Path(raw.strip().strip('"')).expanduser().resolve()


def read_input(path: Optional[Path]) -> bytes:
    """Read the raw export bytes from a file, or stdin when path is None.

    The bytes are returned undecoded; the normalizer does a lossy decode.
    """
    if path is None:
        return sys.stdin.buffer.read()
    with open(path, "rb") as f:
        return f.read()


def write_output(payload: Union[str, bytes], path: Optional[Path]) -> None:
    """Write the rendered document to a file, or stdout when path is None.

    Any I/O failure is raised as SerializationError.
    """
    data = payload.encode("utf-8") if isinstance(payload, str) else payload
    try:
        if path is None:
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
    except OSError as e:
        raise SerializationError(f"Unable to write output to '{path or '<stdout>'}': {e}") from e
