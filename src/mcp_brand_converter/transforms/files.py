"""File helpers shared by the strategies."""

import os
import tempfile
from pathlib import Path

from ..errors import ArtifactIOError


def write_atomic(target: Path, data: bytes) -> None:
    """Write bytes so that `target` is either fully written or left untouched."""
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, 'wb') as tmp:
            tmp.write(data)
        os.replace(tmp_name, target)
    except OSError as e:
        Path(tmp_name).unlink(missing_ok=True)
        raise ArtifactIOError(f"Failed to write {target}: {e}") from e


def read_text(source: Path) -> str:
    try:
        return source.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise ArtifactIOError(f"Failed to read {source}: {e}") from e
