from __future__ import annotations

import asyncio
import os
from pathlib import Path

from common.base.ops import list_dir, remove_path


def test_remove_path_keeps_non_empty_directory(tmp_path: Path) -> None:
    target = tmp_path / "tree"
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "file.txt").write_text("x", encoding="utf-8")

    assert asyncio.run(remove_path(target)) is False
    assert (target / "nested" / "file.txt").exists()


def test_remove_path_removes_empty_directory(tmp_path: Path) -> None:
    target = tmp_path / "empty"
    target.mkdir()

    assert asyncio.run(remove_path(target)) is True
    assert not target.exists()


def test_remove_path_unlinks_symlink_without_following(tmp_path: Path) -> None:
    real_dir = tmp_path / "real"
    real_dir.mkdir()
    (real_dir / "keep.txt").write_text("x", encoding="utf-8")
    link = tmp_path / "link"
    os.symlink(real_dir, link)

    assert asyncio.run(remove_path(link)) is True
    assert not os.path.lexists(link)
    assert (real_dir / "keep.txt").exists()


def test_remove_path_missing_returns_false(tmp_path: Path) -> None:
    assert asyncio.run(remove_path(tmp_path / "nothing")) is False


def test_remove_path_dry_run_keeps_file(tmp_path: Path) -> None:
    target = tmp_path / "file.txt"
    target.write_text("x", encoding="utf-8")

    assert asyncio.run(remove_path(target, dry_run=True)) is True
    assert target.exists()


def test_list_dir_returns_names(tmp_path: Path) -> None:
    (tmp_path / "a").write_text("x", encoding="utf-8")
    (tmp_path / ".b").write_text("x", encoding="utf-8")

    assert sorted(asyncio.run(list_dir(tmp_path))) == [".b", "a"]
