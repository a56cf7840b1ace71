import os
import stat
from pathlib import Path

import pytest

from hubble_birthday.utils import atomic_write_bytes, date_key, format_bytes


@pytest.mark.parametrize(
    "text, expected",
    [
        ("January 1 2019", "01-01"),
        ("December 31 2020", "12-31"),
        ("March 5 2021", "03-05"),
        ("september 9, 1999", "09-09"),
    ],
)
def test_date_key_is_zero_padded_month_and_day(text, expected):
    assert date_key(text) == expected


@pytest.mark.parametrize("text", ["", "Smarch 1 2020", "January", "May 40 2020"])
def test_date_key_rejects_unparseable_dates(text):
    with pytest.raises(ValueError):
        date_key(text)


def test_format_bytes_units():
    assert format_bytes(512) == "512 B"
    assert format_bytes(2048) == "2.0 KB"
    assert format_bytes(3 * 1024 * 1024) == "3.00 MB"


def test_atomic_write_replaces_whole_file(tmp_path: Path):
    target = tmp_path / "full.jpg"
    target.write_bytes(b"old")
    atomic_write_bytes(target, b"new payload")
    assert target.read_bytes() == b"new payload"
    assert [p.name for p in tmp_path.iterdir()] == ["full.jpg"]


def test_atomic_write_leaves_nothing_on_failure(tmp_path: Path, monkeypatch):
    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("hubble_birthday.utils.os.replace", broken_replace)
    with pytest.raises(OSError):
        atomic_write_bytes(tmp_path / "full.jpg", b"data")
    assert list(tmp_path.iterdir()) == []


def test_atomic_write_uses_umask_default_mode(tmp_path: Path):
    previous = os.umask(0o022)
    try:
        atomic_write_bytes(tmp_path / "metadata.json", b"{}")
    finally:
        os.umask(previous)
    assert stat.S_IMODE((tmp_path / "metadata.json").stat().st_mode) == 0o644
