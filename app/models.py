"""Pydantic models shared across HTTP routes."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict, Field

from core.metadata import AttributeMetadata, MetadataCatalog
from core.records import (
    AttributeValue,
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

_TEXT_TYPES = {"text", "string", "memo"}
_NUMBER_TYPES = {"number", "integer", "decimal", "double"}
_BOOLEAN_TYPES = {"boolean", "bool"}
_DATE_TYPES = {"datetime", "date"}
_REFERENCE_TYPES = {"reference", "lookup", "customer", "owner"}
_OPTION_TYPES = {"option", "optionset", "picklist", "state", "status"}
_MONEY_TYPES = {"money", "currency"}


class TypedAttribute(BaseModel):
    """An attribute value with an explicit variant tag."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str = Field(..., description="Value kind: text, number, boolean, datetime, reference, option or money.")
    value: Any = Field(default=None, description="Raw value (text, number, ISO-8601 instant, option code or amount).")
    id: Optional[str] = Field(default=None, description="Identifier of the referenced record.")
    name: Optional[str] = Field(default=None, description="Display name of the referenced record.")
    logical_name: Optional[str] = Field(default=None, alias="logicalName", description="Entity of the referenced record.")
    label: Optional[str] = Field(default=None, description="Option label, when known.")

    def to_value(self) -> Optional[AttributeValue]:
        kind = self.type.strip().lower()
        if kind in _REFERENCE_TYPES:
            identifier = self.id if self.id is not None else self.value
            if identifier is None:
                return None
            return ReferenceValue(id=str(identifier), name=self.name, logical_name=self.logical_name)
        if self.value is None:
            return None
        if kind in _TEXT_TYPES:
            return TextValue(str(self.value))
        if kind in _NUMBER_TYPES:
            return NumberValue(_to_number(self.value))
        if kind in _BOOLEAN_TYPES:
            return BooleanValue(_to_bool(self.value))
        if kind in _DATE_TYPES:
            return DateTimeValue(_to_datetime(self.value))
        if kind in _OPTION_TYPES:
            return OptionValue(code=int(self.value), label=self.label)
        if kind in _MONEY_TYPES:
            return MoneyValue(Decimal(str(self.value)))
        raise ValueError(f"Unknown attribute type '{self.type}'.")


def _to_number(raw: Any) -> Union[int, Decimal]:
    if isinstance(raw, bool):
        raise ValueError("Boolean values cannot be used as numbers.")
    if isinstance(raw, int):
        return raw
    return Decimal(str(raw))


def _to_bool(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    text = str(raw).strip().lower()
    if text in {"true", "1", "yes"}:
        return True
    if text in {"false", "0", "no"}:
        return False
    raise ValueError(f"'{raw}' is not a boolean value.")


def _to_datetime(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    return date_parser.isoparse(str(raw))


class CurrencyPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    symbol: Optional[str] = None
    iso_code: Optional[str] = Field(default=None, alias="isoCode")


class RecordPayload(BaseModel):
    """Sample record; plain JSON scalars are accepted as untyped values."""

    model_config = ConfigDict(populate_by_name=True)

    logical_name: Optional[str] = Field(default=None, alias="logicalName")
    attributes: Dict[str, Union[TypedAttribute, bool, int, float, str, None]] = Field(default_factory=dict)
    formatted_values: Dict[str, str] = Field(default_factory=dict, alias="formattedValues")
    currency: Optional[CurrencyPayload] = None

    def to_record_view(self) -> RecordView:
        attributes: Dict[str, Optional[AttributeValue]] = {}
        for key, raw in self.attributes.items():
            if isinstance(raw, TypedAttribute):
                attributes[key] = raw.to_value()
            elif raw is None:
                attributes[key] = None
            elif isinstance(raw, bool):
                attributes[key] = BooleanValue(raw)
            elif isinstance(raw, int):
                attributes[key] = NumberValue(raw)
            elif isinstance(raw, float):
                attributes[key] = NumberValue(Decimal(repr(raw)))
            else:
                attributes[key] = TextValue(str(raw))

        currency = None
        if self.currency is not None:
            currency = CurrencyReference(
                id=self.currency.id,
                symbol=self.currency.symbol,
                iso_code=self.currency.iso_code,
            )
        return RecordView(
            attributes=attributes,
            formatted_values=dict(self.formatted_values),
            currency=currency,
            logical_name=self.logical_name,
        )


class AttributeMetadataPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    logical_name: str = Field(..., alias="logicalName")
    attribute_type: str = Field(..., alias="attributeType", description="Attribute category, e.g. picklist or money.")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    options: Dict[int, str] = Field(default_factory=dict, description="Option labels keyed by code.")

    def to_metadata(self) -> AttributeMetadata:
        return AttributeMetadata(
            logical_name=self.logical_name,
            attribute_type=self.attribute_type,
            display_name=self.display_name,
            options=dict(self.options),
        )


def metadata_catalog(entries: Optional[List[AttributeMetadataPayload]]) -> Optional[MetadataCatalog]:
    if not entries:
        return None
    return MetadataCatalog(entry.to_metadata() for entry in entries)


class PreviewRequest(BaseModel):
    """Schema describing a name preview request."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    configuration: Dict[str, Any] = Field(..., description="Plugin configuration in its JSON wire format.")
    record: RecordPayload = Field(..., description="Fully populated sample record.")
    metadata: List[AttributeMetadataPayload] = Field(default_factory=list)


class BuildRequest(BaseModel):
    """Schema describing a create/update build request."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    configuration: Dict[str, Any]
    message: str = Field(..., description="Create or Update.")
    target: RecordPayload = Field(..., description="Attributes supplied by the event; only changed ones for updates.")
    pre_image: Optional[RecordPayload] = Field(default=None, alias="preImage")
    metadata: List[AttributeMetadataPayload] = Field(default_factory=list)


class DescribeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    configuration: Dict[str, Any]
    metadata: List[AttributeMetadataPayload] = Field(default_factory=list)


class DiagnosticEntry(BaseModel):
    code: str
    message: str
    field: Optional[str] = None


class PreviewResponse(BaseModel):
    """Successful preview response."""

    name: str
    targetField: str
    diagnostics: List[DiagnosticEntry] = Field(default_factory=list)


class BuildResponse(BaseModel):
    name: Optional[str] = None
    targetField: str
    skipped: bool = Field(default=False, description="True when an update touched no configured attribute.")
    diagnostics: List[DiagnosticEntry] = Field(default_factory=list)


class FieldSummaryEntry(BaseModel):
    index: int
    field: Optional[str] = None
    summary: str


class DescribeResponse(BaseModel):
    fields: List[FieldSummaryEntry]
    referencedAttributes: List[str]
