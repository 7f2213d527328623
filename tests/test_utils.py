"""Tests for size parsing and formatting helpers."""

import pytest

from swp.plugins.errors import ConfigurationError
from swp.plugins.utils import format_size, parse_size_string


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("100", 100),
        ("100B", 100),
        ("1K", 1024),
        ("1kb", 1024),
        ("100MB", 100 * 1024**2),
        ("1.5 GB", int(1.5 * 1024**3)),
        (" 2t ", 2 * 1024**4),
    ],
)
def test_parse_size_string_accepts_supported_units(text: str, expected: int) -> None:
    assert parse_size_string(text) == expected


@pytest.mark.parametrize("text", ["", "MB", "10 PB", "-5MB", "1,5GB", "ten megabytes"])
def test_parse_size_string_rejects_malformed_input(text: str) -> None:
    with pytest.raises(ConfigurationError, match="Invalid size format"):
        parse_size_string(text)


def test_format_size_precision_depends_on_magnitude() -> None:
    assert format_size(0) == "0 B"
    assert format_size(1023) == "1023 B"
    assert format_size(1536) == "1.50 KB"
    assert format_size(10240) == "10.0 KB"
    assert format_size(102400) == "100 KB"
    assert format_size(5 * 1024**4) == "5.00 TB"


@pytest.mark.parametrize(
    "size",
    [100, 1024, 100 * 1024, 1024**2, 100 * 1024**2, 1024**3],
)
def test_formatted_sizes_parse_back_within_a_megabyte(size: int) -> None:
    assert abs(parse_size_string(format_size(size)) - size) < 1024**2


def test_configuration_error_str_includes_kind() -> None:
    error = ConfigurationError("bad value")

    assert str(error) == "Configuration error: bad value"
