from __future__ import annotations

from auxiliary import format_bytes, format_count, format_path_for_display


def test_format_bytes_units() -> None:
    assert format_bytes(0) == "0 B"
    assert format_bytes(789) == "789 B"
    assert format_bytes(12 * 1024) == "12.0 KiB"
    assert format_bytes(int(1.5 * 1024**2)) == "1.5 MiB"
    assert format_bytes(3 * 1024**3) == "3.0 GiB"


def test_format_count_pluralizes() -> None:
    assert format_count(1, "file") == "1 file"
    assert format_count(0, "file") == "0 files"
    assert format_count(2048, "file") == "2,048 files"
    assert format_count(2, "directory", "directories") == "2 directories"


def test_format_path_for_display_replaces_home_prefix_only() -> None:
    assert format_path_for_display("/home/ann/build", home_path="/home/ann") == "~/build"
    assert format_path_for_display("/home/ann", home_path="/home/ann") == "~"
    assert format_path_for_display("/home/anna/build", home_path="/home/ann") == "/home/anna/build"
    assert format_path_for_display("/srv/home/ann", home_path="/home/ann") == "/srv/home/ann"
