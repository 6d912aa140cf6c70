"""
General helpers
"""
import os
import tempfile
from pathlib import Path
from typing import List


def write_text_atomic(path: Path, content: str, mode: int = 0o644) -> None:
    """Replace a whole file in one step

    Content goes to a temp file in the same directory which is then
    renamed over the target, so a reader sees either the old file or
    the new one, never a partial write.

    Raises:
        OSError: the directory cannot be created or written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def render_lines(lines: List[str]) -> str:
    """Join config lines into file content with a trailing newline"""
    return "\n".join(lines) + "\n"
