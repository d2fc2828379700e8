import pathlib
import sys
from datetime import datetime
from decimal import Decimal

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core.configuration import FieldSpec
from core.diagnostics import CYCLIC_CHAIN, FORMAT_FALLBACK, TYPE_MISMATCH, Diagnostics
from core.metadata import AttributeMetadata, MetadataCatalog
from core.name_builder import assemble
from core.records import (
    BooleanValue,
    CurrencyReference,
    DateTimeValue,
    MoneyValue,
    NumberValue,
    OptionValue,
    RecordView,
    ReferenceValue,
    TextValue,
)
from core.value_resolver import effective_type, resolve_text


def _record(values, **kwargs):
    return RecordView.from_mapping(values, **kwargs)


@pytest.mark.parametrize(
    "spec, expected",
    [
        (FieldSpec(field="nickname", default="Anon"), "Anon"),
        (FieldSpec(field="nickname"), ""),
        (FieldSpec(default=" - "), " - "),
        (FieldSpec(), ""),
    ],
)
def test_missing_field_without_alternate_returns_default(spec, expected):
    assert resolve_text(spec, _record({})) == expected


def test_alternate_chain_supplies_value():
    spec = FieldSpec(field="nickname", alternate_field=FieldSpec(field="firstname"))
    assert resolve_text(spec, _record({"firstname": "Ada"})) == "Ada"


def test_alternate_default_used_at_end_of_chain():
    spec = FieldSpec(
        field="nickname",
        alternate_field=FieldSpec(field="firstname", alternate_field=FieldSpec(default="Unknown")),
    )
    assert resolve_text(spec, _record({})) == "Unknown"


def test_primary_default_ignored_when_alternate_exists():
    spec = FieldSpec(field="nickname", default="Primary", alternate_field=FieldSpec(field="other"))
    assert resolve_text(spec, _record({})) == ""


def test_empty_text_counts_as_missing():
    spec = FieldSpec(field="nickname", alternate_field=FieldSpec(field="firstname"))
    record = _record({"nickname": "", "firstname": "Ada"})
    assert resolve_text(spec, record) == "Ada"


def test_cyclic_chain_stops_with_diagnostic():
    first = FieldSpec(field="a")
    second = FieldSpec(field="b", alternate_field=first)
    # Frozen models cannot normally form a loop; force one to model a corrupted graph.
    object.__setattr__(first, "alternate_field", second)
    diagnostics = Diagnostics()

    assert resolve_text(first, _record({}), diagnostics=diagnostics) == ""
    assert diagnostics.has(CYCLIC_CHAIN)


def test_field_level_truncation_measures_bare_value():
    spec = FieldSpec(field="title", max_length=5, truncation_indicator="…", prefix="[", suffix="]")
    assert resolve_text(spec, _record({"title": "Director"})) == "Dire…"


def test_truncation_is_skipped_when_value_fits():
    spec = FieldSpec(field="title", max_length=8)
    assert resolve_text(spec, _record({"title": "Director"})) == "Director"


def test_lookup_prefers_display_name():
    spec = FieldSpec(field="ownerid", type="lookup")
    assert resolve_text(spec, _record({"ownerid": ReferenceValue(id="42", name="Ada")})) == "Ada"
    assert resolve_text(spec, _record({"ownerid": ReferenceValue(id="42")})) == "42"


def test_optionset_uses_label_then_code():
    spec = FieldSpec(field="statuscode", type="optionset")
    labelled = _record({"statuscode": OptionValue(1)}, formatted_values={"statuscode": "Active"})
    assert resolve_text(spec, labelled) == "Active"
    assert resolve_text(spec, _record({"statuscode": OptionValue(2)})) == "2"


def test_optionset_falls_back_to_metadata_labels():
    metadata = MetadataCatalog([AttributeMetadata("statuscode", "Status", options={1: "Active"})])
    spec = FieldSpec(field="statuscode")
    labelled = _record({"statuscode": OptionValue(1)}, formatted_values={"statuscode": "Open"})

    assert resolve_text(spec, _record({"statuscode": OptionValue(1)}), metadata) == "Active"
    assert resolve_text(spec, labelled, metadata) == "Open"
    assert resolve_text(spec, _record({"statuscode": OptionValue(3)}), metadata) == "3"


def test_date_is_shifted_before_formatting():
    spec = FieldSpec(field="createdon", type="date", timezone_offset_hours=5)
    record = _record({"createdon": DateTimeValue(datetime(2024, 1, 1, 22, 0))})
    assert resolve_text(spec, record) == "2024-01-02"

    formatted = FieldSpec(field="createdon", type="datetime", format="yyyy/MM/dd HH:mm", timezone_offset_hours=-1.5)
    assert resolve_text(formatted, record) == "2024/01/01 20:30"


def test_bad_date_format_falls_back_to_default_rendering():
    diagnostics = Diagnostics()
    spec = FieldSpec(field="createdon", type="date", format="%")
    record = _record({"createdon": DateTimeValue(datetime(2024, 1, 1))})

    assert resolve_text(spec, record, diagnostics=diagnostics) == "2024-01-01"
    assert diagnostics.has(FORMAT_FALLBACK)


def test_number_and_currency_rendering():
    record = _record(
        {"employees": NumberValue(2_300_000), "revenue": MoneyValue(Decimal("1234.5"))},
        currency=CurrencyReference(id="usd", symbol="$"),
    )
    assert resolve_text(FieldSpec(field="employees", type="number", format="0.0M"), record) == "2.3M"
    assert resolve_text(FieldSpec(field="revenue", type="currency"), record) == "$1,234.50"


def test_boolean_renders_as_text():
    assert resolve_text(FieldSpec(field="active"), _record({"active": BooleanValue(True)})) == "True"


def test_type_mismatch_uses_plain_text():
    diagnostics = Diagnostics()
    spec = FieldSpec(field="createdon", type="date")
    assert resolve_text(spec, _record({"createdon": TextValue("soon")}), diagnostics=diagnostics) == "soon"
    assert diagnostics.codes() == [TYPE_MISMATCH]


def test_type_inferred_from_metadata_without_mutating_spec():
    metadata = MetadataCatalog([AttributeMetadata("revenue", "Money")])
    record = _record({"revenue": 1500}, currency=CurrencyReference(id="usd", symbol="$"))
    spec = FieldSpec(field="revenue")

    assert effective_type(spec, record, metadata) == "currency"
    assert resolve_text(spec, record, metadata) == "$1,500.00"
    assert spec.type is None


def test_type_inferred_from_value_variant():
    record = _record({"statuscode": OptionValue(3, label="Closed")})
    assert effective_type(FieldSpec(field="statuscode"), record) == "optionset"
    assert resolve_text(FieldSpec(field="statuscode"), record) == "Closed"


@pytest.mark.parametrize(
    "instant, hours, expected",
    [
        (datetime(9999, 12, 31, 23), 2, "9999-12-31"),
        (datetime(1, 1, 1, 1), -5, "0001-01-01"),
        (datetime(2024, 1, 1), 1e12, "2024-01-01"),
    ],
)
def test_date_shift_out_of_range_falls_back_to_unshifted_default(instant, hours, expected):
    diagnostics = Diagnostics()
    spec = FieldSpec(field="createdon", type="date", format="yyyy", timezone_offset_hours=hours)

    text = resolve_text(spec, _record({"createdon": DateTimeValue(instant)}), diagnostics=diagnostics)

    assert text == expected
    assert diagnostics.codes() == [FORMAT_FALLBACK]


def test_date_shift_overflow_does_not_break_assembly():
    fields = [
        FieldSpec(field="code", suffix=" "),
        FieldSpec(field="createdon", type="date", format="yyyy", timezone_offset_hours=2),
    ]
    record = _record({"code": "X", "createdon": DateTimeValue(datetime(9999, 12, 31, 23))})

    assert assemble(fields, record) == "X 9999-12-31"
