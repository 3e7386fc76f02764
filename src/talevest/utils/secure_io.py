"""
Tale Vesting Secure I/O Utilities

Atomic, owner-only writes for the deployment state file.

Security Properties:
- Files created with 0o600 (owner read/write only)
- Directories created with 0o700
- Write-to-temp-then-rename, so readers see either the old or the new
  state, never a partial file
"""

import json
import os
import tempfile
from typing import Any, Union

SECURE_FILE_MODE = 0o600  # Owner read/write only
SECURE_DIR_MODE = 0o700   # Owner read/write/execute only


def secure_create_directory(path: str, mode: int = SECURE_DIR_MODE) -> None:
    """Create a directory (and parents) and force its permissions."""
    # os.makedirs respects umask, so set permissions afterwards
    os.makedirs(path, exist_ok=True)
    os.chmod(path, mode)


def secure_atomic_write(
    path: str,
    content: Union[str, bytes],
    mode: int = SECURE_FILE_MODE,
    encoding: str = "utf-8"
) -> None:
    """
    Atomically write content to a file with secure permissions.

    Args:
        path: Path to the target file
        content: String or bytes to write
        mode: File permission mode (default: 0o600)
        encoding: Text encoding for string content (default: utf-8)

    Raises:
        OSError: If file creation, writing, or rename fails
        TypeError: If content is neither str nor bytes
    """
    dir_path = os.path.dirname(path)
    if dir_path and not os.path.exists(dir_path):
        secure_create_directory(dir_path)

    # Temp file must live in the same directory for an atomic rename
    fd, tmp_path = tempfile.mkstemp(dir=dir_path or None, prefix=".tmp_")

    try:
        os.fchmod(fd, mode)

        with os.fdopen(fd, "wb") as f:
            if isinstance(content, str):
                f.write(content.encode(encoding))
            elif isinstance(content, bytes):
                f.write(content)
            else:
                raise TypeError(f"content must be str or bytes, got {type(content).__name__}")

        os.replace(tmp_path, path)

    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def secure_atomic_write_json(
    path: str,
    data: Any,
    mode: int = SECURE_FILE_MODE,
    indent: int = 2
) -> None:
    """Atomically write JSON data to a file with secure permissions."""
    content = json.dumps(data, indent=indent, sort_keys=True)
    secure_atomic_write(path, content, mode=mode)


def read_json(path: str) -> Any:
    """Read a JSON document written by secure_atomic_write_json."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
