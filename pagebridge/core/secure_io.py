"""Secure file I/O utilities for pagebridge.

Backups and manual exports contain copied page content, so both are written
owner-only and without a window where another process could read them.
"""

import os
import stat
from pathlib import Path

# Owner-only directories
SECURE_DIR_MODE: int = stat.S_IRWXU  # 0o700

# Owner read/write only
SECURE_FILE_MODE: int = stat.S_IRUSR | stat.S_IWUSR  # 0o600


def secure_mkdir(path: Path, parents: bool = True) -> None:
    """Create directory with secure permissions (0o700).

    Only directories created here get the owner-only mode. Existing
    directories, such as a user-chosen parent of the backup database,
    keep the permissions they already have.

    Args:
        path: Directory path to create.
        parents: If True, create parent directories as needed.
    """
    if parents:
        for parent in reversed(list(path.parents)):
            if not parent.exists():
                parent.mkdir(mode=SECURE_DIR_MODE)
                # mkdir's mode is filtered through the umask
                os.chmod(parent, SECURE_DIR_MODE)

    if not path.exists():
        path.mkdir(mode=SECURE_DIR_MODE)
        os.chmod(path, SECURE_DIR_MODE)


def secure_create_empty(path: Path) -> None:
    """Create an empty file with 0o600 permissions if it does not exist yet."""
    if path.exists():
        return
    fd = os.open(
        str(path),
        os.O_CREAT | os.O_EXCL | os.O_WRONLY,
        SECURE_FILE_MODE,
    )
    os.close(fd)


def secure_write_atomic(path: Path, content: str | bytes) -> None:
    """Atomically write to a file (new or existing) with secure permissions.

    Content goes to a sibling temp file created with O_EXCL and 0o600, which
    is then renamed over the destination.

    Args:
        path: Path to the file to write.
        content: Content to write (str or bytes).
    """
    if isinstance(content, str):
        content = content.encode("utf-8")

    temp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        fd = os.open(
            str(temp_path),
            os.O_CREAT | os.O_EXCL | os.O_WRONLY,
            SECURE_FILE_MODE,
        )
        try:
            os.write(fd, content)
            os.fsync(fd)
        finally:
            os.close(fd)

        os.replace(temp_path, path)
        # Some filesystems drop the mode on replace
        os.chmod(path, SECURE_FILE_MODE)
    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise
