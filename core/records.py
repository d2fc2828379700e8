"""Read-only record views consumed by the name builder engine.

Attribute values are modelled as a closed set of frozen dataclasses so the
resolver, formatter and condition evaluator can dispatch on the variant
instead of guessing from arbitrary Python objects. A :class:`RecordView`
bundles those values with the optional side-table of precomputed display
labels and the record's currency reference.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from typing import Dict, Mapping, Optional, Union
from uuid import UUID


@dataclass(frozen=True)
class TextValue:
    text: str


@dataclass(frozen=True)
class NumberValue:
    value: Union[int, float, Decimal]

    def as_decimal(self) -> Decimal:
        if isinstance(self.value, Decimal):
            return self.value
        if isinstance(self.value, float):
            # repr keeps the shortest round-tripping digits (0.1 stays 0.1).
            return Decimal(repr(self.value))
        return Decimal(self.value)


@dataclass(frozen=True)
class BooleanValue:
    flag: bool


@dataclass(frozen=True)
class DateTimeValue:
    instant: datetime


@dataclass(frozen=True)
class ReferenceValue:
    id: str
    name: Optional[str] = None
    logical_name: Optional[str] = None


@dataclass(frozen=True)
class OptionValue:
    code: int
    label: Optional[str] = None


@dataclass(frozen=True)
class MoneyValue:
    amount: Decimal


AttributeValue = Union[
    TextValue,
    NumberValue,
    BooleanValue,
    DateTimeValue,
    ReferenceValue,
    OptionValue,
    MoneyValue,
]

_VARIANTS = (TextValue, NumberValue, BooleanValue, DateTimeValue, ReferenceValue, OptionValue, MoneyValue)

# Field type category implied by each variant when neither the field nor the
# attribute metadata names one.
_IMPLIED_TYPES: Dict[type, str] = {
    TextValue: "string",
    NumberValue: "number",
    BooleanValue: "boolean",
    DateTimeValue: "datetime",
    ReferenceValue: "lookup",
    OptionValue: "optionset",
    MoneyValue: "currency",
}


def implied_type(value: AttributeValue) -> str:
    return _IMPLIED_TYPES.get(type(value), "string")


def coerce_value(raw: object) -> Optional[AttributeValue]:
    """Wrap a plain Python value in the matching attribute variant."""

    if raw is None:
        return None
    if isinstance(raw, _VARIANTS):
        return raw  # type: ignore[return-value]
    if isinstance(raw, bool):
        return BooleanValue(raw)
    if isinstance(raw, (int, float, Decimal)):
        return NumberValue(raw)
    if isinstance(raw, datetime):
        return DateTimeValue(raw)
    if isinstance(raw, date):
        return DateTimeValue(datetime.combine(raw, time()))
    if isinstance(raw, UUID):
        return ReferenceValue(id=str(raw))
    if isinstance(raw, str):
        return TextValue(raw)
    return TextValue(str(raw))


@dataclass(frozen=True)
class CurrencyReference:
    """Currency attached to a record; the symbol is resolved by the caller."""

    id: str
    symbol: Optional[str] = None
    iso_code: Optional[str] = None

    def display_symbol(self) -> Optional[str]:
        if self.symbol and self.symbol.strip():
            return self.symbol
        if self.iso_code and self.iso_code.strip():
            return self.iso_code
        return None


@dataclass(frozen=True)
class RecordView:
    """A fully populated record; the engine never fetches missing attributes."""

    attributes: Mapping[str, Optional[AttributeValue]] = field(default_factory=dict)
    formatted_values: Mapping[str, str] = field(default_factory=dict)
    currency: Optional[CurrencyReference] = None
    logical_name: Optional[str] = None

    @classmethod
    def from_mapping(
        cls,
        values: Mapping[str, object],
        *,
        formatted_values: Optional[Mapping[str, str]] = None,
        currency: Optional[CurrencyReference] = None,
        logical_name: Optional[str] = None,
    ) -> "RecordView":
        attributes = {str(key): coerce_value(value) for key, value in values.items()}
        return cls(
            attributes=attributes,
            formatted_values=dict(formatted_values or {}),
            currency=currency,
            logical_name=logical_name,
        )

    def get(self, name: Optional[str]) -> Optional[AttributeValue]:
        if not name:
            return None
        return self.attributes.get(name)

    def contains(self, name: Optional[str]) -> bool:
        return self.get(name) is not None

    def has_value(self, name: Optional[str]) -> bool:
        value = self.get(name)
        if value is None:
            return False
        if isinstance(value, TextValue):
            return value.text != ""
        return True

    def label(self, name: Optional[str]) -> Optional[str]:
        if not name:
            return None
        return self.formatted_values.get(name)

    def currency_symbol(self) -> Optional[str]:
        if self.currency is None:
            return None
        return self.currency.display_symbol()


def merge_images(pre_image: Optional[RecordView], target: RecordView) -> RecordView:
    """Overlay an update target on its pre-image.

    Labels captured in the pre-image are dropped for attributes the target
    overwrites without supplying a fresh label, so a stale option label never
    survives a changed code.
    """

    if pre_image is None:
        return target

    attributes: Dict[str, Optional[AttributeValue]] = dict(pre_image.attributes)
    labels: Dict[str, str] = dict(pre_image.formatted_values)

    for key, value in target.attributes.items():
        attributes[key] = value
        if key in labels and key not in target.formatted_values:
            labels.pop(key)

    labels.update(target.formatted_values)

    return RecordView(
        attributes=attributes,
        formatted_values=labels,
        currency=target.currency or pre_image.currency,
        logical_name=target.logical_name or pre_image.logical_name,
    )


__all__ = [
    "AttributeValue",
    "BooleanValue",
    "CurrencyReference",
    "DateTimeValue",
    "MoneyValue",
    "NumberValue",
    "OptionValue",
    "RecordView",
    "ReferenceValue",
    "TextValue",
    "coerce_value",
    "implied_type",
    "merge_images",
]
