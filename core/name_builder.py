# File: core/name_builder.py
# Version: 1.0.0
# Last Modified: 2025-11-02
# Summary: Assembles the composite record name from an ordered field list.

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from core.conditions import evaluate
from core.configuration import FieldSpec, PluginConfiguration
from core.diagnostics import FIELD_EXCLUDED, GLOBAL_TRUNCATION, Diagnostics, report
from core.metadata import MetadataLookup
from core.records import RecordView
from core.truncation import DEFAULT_TRUNCATION_INDICATOR, truncate
from core.value_resolver import resolve_text

logger = logging.getLogger(__name__)


def global_indicator(fields: Sequence[FieldSpec]) -> str:
    """Return the first customised truncation indicator in list order."""

    for spec in fields:
        indicator = spec.truncation_indicator
        if indicator and indicator.strip() and indicator != DEFAULT_TRUNCATION_INDICATOR:
            return indicator
    return DEFAULT_TRUNCATION_INDICATOR


def decorate(spec: FieldSpec, text: str) -> str:
    if not text:
        return ""
    return f"{spec.prefix or ''}{text}{spec.suffix or ''}"


def assemble(
    fields: Sequence[FieldSpec],
    record: RecordView,
    global_max_length: Optional[int] = None,
    *,
    metadata: Optional[MetadataLookup] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> str:
    """
    Build the name for ``record`` from ``fields``.

    Parameters:
    - fields: ordered field specifications
    - record: the fully populated record to read from
    - global_max_length: optional cap applied to the concatenated result
    - metadata: attribute metadata used to infer untyped fields
    - diagnostics: optional channel recording every fallback taken

    Returns:
    - The assembled name; an empty string is a valid result
    """
    parts: List[str] = []

    for position, spec in enumerate(fields, start=1):
        if not evaluate(spec.include_if, record, diagnostics):
            report(
                diagnostics,
                FIELD_EXCLUDED,
                f"Field #{position} ('{spec.field or ''}') excluded by its condition.",
                field=spec.field,
            )
            continue

        text = resolve_text(spec, record, metadata, diagnostics)
        parts.append(decorate(spec, text))

    name = "".join(parts)

    if global_max_length is not None and len(name) > global_max_length:
        indicator = global_indicator(fields)
        report(
            diagnostics,
            GLOBAL_TRUNCATION,
            f"Name of {len(name)} characters truncated to {global_max_length}.",
        )
        name = truncate(name, global_max_length, indicator)

    return name


def build_name(
    configuration: PluginConfiguration,
    record: RecordView,
    metadata: Optional[MetadataLookup] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> str:
    """Assemble the name described by a full plugin configuration."""

    if diagnostics is None:
        diagnostics = Diagnostics(tracing=configuration.tracing_enabled)

    name = assemble(
        configuration.effective_fields(),
        record,
        configuration.max_length,
        metadata=metadata,
        diagnostics=diagnostics,
    )
    if configuration.tracing_enabled:
        logger.info("[name_builder] Built name '%s' for %s", name, configuration.entity or "record")
    return name


__all__ = ["assemble", "build_name", "decorate", "global_indicator"]
