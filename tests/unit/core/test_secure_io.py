"""Tests for owner-only file and directory creation."""

import os
import stat
from pathlib import Path

import pytest

from pagebridge.core.secure_io import (
    SECURE_DIR_MODE,
    SECURE_FILE_MODE,
    secure_create_empty,
    secure_mkdir,
    secure_write_atomic,
)


def _mode(path: Path) -> int:
    return stat.S_IMODE(os.stat(path).st_mode)


@pytest.mark.unix_only
class TestSecureMkdir:
    """Tests for secure_mkdir()."""

    def test_creates_with_owner_only_mode(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b"
        secure_mkdir(target)
        assert target.is_dir()
        assert _mode(target) == SECURE_DIR_MODE

    def test_leaves_existing_directory_mode(self, tmp_path: Path) -> None:
        target = tmp_path / "shared"
        target.mkdir()
        os.chmod(target, 0o755)
        secure_mkdir(target)
        assert _mode(target) == 0o755

    def test_only_created_parents_tightened(self, tmp_path: Path) -> None:
        shared = tmp_path / "shared"
        shared.mkdir()
        os.chmod(shared, 0o755)
        target = shared / "pagebridge" / "logs"
        secure_mkdir(target)
        assert _mode(shared) == 0o755
        assert _mode(shared / "pagebridge") == SECURE_DIR_MODE
        assert _mode(target) == SECURE_DIR_MODE


@pytest.mark.unix_only
class TestSecureFiles:
    """Tests for secure_create_empty() and secure_write_atomic()."""

    def test_create_empty(self, tmp_path: Path) -> None:
        target = tmp_path / "store.db"
        secure_create_empty(target)
        assert target.exists()
        assert target.read_bytes() == b""
        assert _mode(target) == SECURE_FILE_MODE

    def test_create_empty_leaves_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "store.db"
        target.write_text("keep")
        secure_create_empty(target)
        assert target.read_text() == "keep"

    def test_write_atomic_new_file(self, tmp_path: Path) -> None:
        target = tmp_path / "export.json"
        secure_write_atomic(target, '{"a": 1}')
        assert target.read_text() == '{"a": 1}'
        assert _mode(target) == SECURE_FILE_MODE
        assert not (tmp_path / "export.json.tmp").exists()

    def test_write_atomic_replaces_and_tightens(self, tmp_path: Path) -> None:
        target = tmp_path / "export.json"
        target.write_text("old")
        os.chmod(target, 0o644)
        secure_write_atomic(target, b"new")
        assert target.read_text() == "new"
        assert _mode(target) == SECURE_FILE_MODE

    def test_write_atomic_fails_if_temp_exists(self, tmp_path: Path) -> None:
        target = tmp_path / "export.json"
        (tmp_path / "export.json.tmp").write_text("stale")
        with pytest.raises(FileExistsError):
            secure_write_atomic(target, "data")
        assert not target.exists()
