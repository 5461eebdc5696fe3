from pathlib import Path

import pytest

from kuma_imagemin.backup import (
    backup_path_for,
    clear_origin,
    is_backup,
    iter_files,
    original_path_for,
    reset_by_origin,
)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("photo.png", "photo.kuma_origin.png"),
        ("photo.JPG", "photo.kuma_origin.JPG"),
        ("archive.tar.gz", "archive.tar.kuma_origin.gz"),
        ("README", "README.kuma_origin"),
    ],
)
def test_backup_naming(tmp_path, name, expected):
    backup = backup_path_for(tmp_path / name)
    assert backup == tmp_path / expected
    assert is_backup(backup)
    assert not is_backup(tmp_path / name)
    assert original_path_for(backup) == tmp_path / name


def test_marker_must_be_a_separate_token():
    assert not is_backup(Path("kuma_origin.png"))
    assert not is_backup(Path("photo_kuma_origin.png"))
    assert not is_backup(Path("photo.kuma_origin.png.bak"))


def test_original_path_for_rejects_plain_files():
    with pytest.raises(ValueError):
        original_path_for(Path("photo.png"))


def _tree(root: Path) -> None:
    (root / "sub").mkdir(parents=True)
    (root / "a.png").write_bytes(b"compressed-a")
    (root / "a.kuma_origin.png").write_bytes(b"original-a")
    (root / "sub" / "b.jpg").write_bytes(b"compressed-b")
    (root / "sub" / "b.kuma_origin.jpg").write_bytes(b"original-b")
    (root / "sub" / "c.png").write_bytes(b"untracked")


def test_clear_origin_removes_only_backups(tmp_path):
    _tree(tmp_path)

    removed = clear_origin(tmp_path)

    assert sorted(p.name for p in removed) == ["a.kuma_origin.png", "b.kuma_origin.jpg"]
    assert sorted(p.name for p in iter_files(tmp_path)) == ["a.png", "b.jpg", "c.png"]
    assert (tmp_path / "a.png").read_bytes() == b"compressed-a"


def test_reset_by_origin_restores_and_consumes_backups(tmp_path):
    _tree(tmp_path)

    restored = reset_by_origin(tmp_path)

    assert sorted(p.name for p in restored) == ["a.png", "b.jpg"]
    assert (tmp_path / "a.png").read_bytes() == b"original-a"
    assert (tmp_path / "sub" / "b.jpg").read_bytes() == b"original-b"
    assert (tmp_path / "sub" / "c.png").read_bytes() == b"untracked"
    assert not any(is_backup(p) for p in iter_files(tmp_path))


def test_reset_by_origin_recreates_missing_original(tmp_path):
    (tmp_path / "gone.kuma_origin.png").write_bytes(b"original")

    reset_by_origin(tmp_path)

    assert (tmp_path / "gone.png").read_bytes() == b"original"


def test_single_file_targets(tmp_path):
    _tree(tmp_path)

    assert clear_origin(tmp_path / "a.png") == []
    assert reset_by_origin(tmp_path / "sub" / "b.kuma_origin.jpg") == [tmp_path / "sub" / "b.jpg"]
    assert (tmp_path / "a.kuma_origin.png").exists()


def test_iter_files_is_sorted_and_recursive(tmp_path):
    _tree(tmp_path)
    names = [p.relative_to(tmp_path).as_posix() for p in iter_files(tmp_path)]
    assert names == [
        "a.kuma_origin.png",
        "a.png",
        "sub/b.jpg",
        "sub/b.kuma_origin.jpg",
        "sub/c.png",
    ]
