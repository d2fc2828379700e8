import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.configuration import FieldSpec
from core.pattern_parser import parse_pattern


def test_fields_types_formats_and_literals():
    parts = parse_pattern("createdon:date:yyyy-MM-dd | ownerid - statuscode")

    assert parts == [
        FieldSpec(field="createdon", type="date", format="yyyy-MM-dd"),
        FieldSpec(default=" | "),
        FieldSpec(field="ownerid"),
        FieldSpec(default=" - "),
        FieldSpec(field="statuscode"),
    ]


def test_quoted_literal_prefix():
    assert parse_pattern("'CASE-'ticketnumber") == [FieldSpec(default="CASE-"), FieldSpec(field="ticketnumber")]


def test_double_quotes_and_spaces_inside_literals():
    assert parse_pattern('name" / "code') == [
        FieldSpec(field="name"),
        FieldSpec(default=" / "),
        FieldSpec(field="code"),
    ]


def test_time_format_keeps_colons():
    parts = parse_pattern("createdon:datetime:HH:mm")
    assert parts == [FieldSpec(field="createdon", type="datetime", format="HH:mm")]


def test_picklist_type_is_an_option_set():
    assert parse_pattern("statuscode:picklist")[0].type == "optionset"


def test_literal_parts_resolve_to_their_text():
    literal = parse_pattern("name - code")[1]
    assert literal.is_literal
    assert literal.default == " - "


def test_blank_pattern_has_no_parts():
    assert parse_pattern("") == []
    assert parse_pattern("   ") == []
    assert parse_pattern(None) == []
