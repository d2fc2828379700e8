import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.truncation import DEFAULT_TRUNCATION_INDICATOR, effective_indicator, truncate


@pytest.mark.parametrize(
    "value, max_length, indicator, expected",
    [
        ("Ada Lovelace", 10, None, "Ada Lov..."),
        ("Director", 5, "…", "Dire…"),
        ("Director", 3, None, "..."),
        ("Director", 2, None, ".."),
        ("Director", 4, "[more]", "[mor"),
        ("Director", 0, None, ""),
        ("Director", -1, "…", ""),
        ("Director", 6, "  ", "Dir..."),
    ],
)
def test_truncate(value, max_length, indicator, expected):
    assert truncate(value, max_length, indicator) == expected


@pytest.mark.parametrize("max_length", range(1, 15))
def test_truncate_never_exceeds_limit(max_length):
    assert len(truncate("Name Builder Engine", max_length, "--")) <= max_length


def test_effective_indicator():
    assert effective_indicator(None) == DEFAULT_TRUNCATION_INDICATOR
    assert effective_indicator("") == "..."
    assert effective_indicator("~") == "~"
