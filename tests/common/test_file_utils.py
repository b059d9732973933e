import os
import stat

import pytest
from pytest_mock import MockerFixture

from common.file_utils import backup_file, cleanup_directory_contents, write_text_file


def test_write_text_file_creates_parents_and_sets_mode(tmp_path):
    target = tmp_path / "etc" / "site.conf"

    write_text_file(target, "server {}\n", None, mode=0o640)

    assert target.read_text() == "server {}\n"
    assert stat.S_IMODE(target.stat().st_mode) == 0o640
    assert [p.name for p in target.parent.iterdir()] == ["site.conf"]


def test_write_text_file_replaces_atomically(tmp_path, mocker: MockerFixture):
    """A failed write leaves the previous content and no temporary file."""
    target = tmp_path / "wp-config.php"
    target.write_text("old")
    mocker.patch("common.file_utils.os.replace", side_effect=OSError("disk full"))

    with pytest.raises(OSError, match="disk full"):
        write_text_file(target, "new", None)

    assert target.read_text() == "old"
    assert [p.name for p in tmp_path.iterdir()] == ["wp-config.php"]


def test_backup_file_copies_with_timestamp(tmp_path):
    original = tmp_path / "example.org.conf"
    original.write_text("server { listen 80; }")

    backup = backup_file(original, None)

    assert backup is not None
    assert backup.name.startswith("example.org.conf.bak.")
    assert backup.read_text() == "server { listen 80; }"
    assert original.exists()


def test_backup_file_missing_source(tmp_path):
    assert backup_file(tmp_path / "absent.conf", None) is None


def test_cleanup_directory_contents(tmp_path):
    web_root = tmp_path / "html"
    (web_root / "sub").mkdir(parents=True)
    (web_root / "index.html").write_text("Welcome to nginx!")
    (web_root / "sub" / "file").write_text("x")
    os.symlink(tmp_path, web_root / "link")

    cleanup_directory_contents(web_root, None)

    assert web_root.is_dir()
    assert list(web_root.iterdir()) == []
    assert tmp_path.is_dir()


def test_cleanup_creates_missing_directory(tmp_path):
    cleanup_directory_contents(tmp_path / "new" / "root", None)
    assert (tmp_path / "new" / "root").is_dir()


def test_cleanup_rejects_a_file(tmp_path):
    not_a_dir = tmp_path / "file"
    not_a_dir.write_text("")
    with pytest.raises(NotADirectoryError):
        cleanup_directory_contents(not_a_dir, None)
