"""
Tests for the filesystem helpers used by atomic saves.
"""

import os

import pytest

from src.utils.fs import atomic_replace, copy_mode, create_sibling_temp, remove_quietly


def test_create_sibling_temp_lives_next_to_target(tmp_path):
    target = tmp_path / "data.csv"

    tmp = create_sibling_temp(target)

    assert tmp.parent == tmp_path
    assert tmp.name.startswith(".data.csv.")
    assert tmp.name.endswith(".tmp")
    assert tmp.exists()
    assert tmp.read_bytes() == b""
    # The target itself is not created
    assert not target.exists()


def test_create_sibling_temp_missing_directory_raises(tmp_path):
    with pytest.raises(OSError):
        create_sibling_temp(tmp_path / "nope" / "data.csv")


def test_atomic_replace_overwrites_target(tmp_path):
    target = tmp_path / "data.csv"
    target.write_text("old\n")
    tmp = create_sibling_temp(target)
    tmp.write_text("new\n")

    atomic_replace(tmp, target)

    assert target.read_text() == "new\n"
    assert not tmp.exists()


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_copy_mode_matches_source_permissions(tmp_path):
    target = tmp_path / "data.csv"
    target.write_text("x\n")
    os.chmod(target, 0o640)
    tmp = create_sibling_temp(target)

    copy_mode(target, tmp)

    assert tmp.stat().st_mode & 0o777 == 0o640


def test_copy_mode_missing_source_is_noop(tmp_path):
    tmp = create_sibling_temp(tmp_path / "data.csv")

    copy_mode(tmp_path / "data.csv", tmp)

    assert tmp.exists()


def test_remove_quietly(tmp_path):
    victim = tmp_path / "victim.tmp"
    victim.write_text("x")

    remove_quietly(victim)
    assert not victim.exists()

    # Missing file and None are both no-ops
    remove_quietly(victim)
    remove_quietly(None)
