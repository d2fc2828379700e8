# File: core/name_service.py
# Version: 1.0.0
# Last Modified: 2025-11-02
"""Create/update orchestration around the name builder."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

from core.configuration import PluginConfiguration
from core.diagnostics import Diagnostics
from core.metadata import MetadataLookup
from core.name_builder import build_name
from core.records import RecordView, merge_images

logger = logging.getLogger(__name__)

_SUPPORTED_MESSAGES = ("create", "update")


class InvalidEventError(ValueError):
    """Raised when a build is requested for an unsupported message."""


@dataclass
class NameBuildResult:
    name: str
    target_field: str
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    def assignments(self) -> Dict[str, str]:
        """Attribute updates to apply; an empty name leaves the target untouched."""

        if not self.name:
            return {}
        return {self.target_field: self.name}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "targetField": self.target_field,
            "diagnostics": self.diagnostics.to_list(),
        }


def should_rebuild(configuration: PluginConfiguration, changed_attributes: Iterable[str]) -> bool:
    """Return True when any changed attribute feeds the configured name."""

    changed = {name.lower() for name in changed_attributes if name}
    return any(name.lower() in changed for name in configuration.referenced_attributes())


def build_name_for_event(
    configuration: PluginConfiguration,
    message: str,
    target: RecordView,
    pre_image: Optional[RecordView] = None,
    metadata: Optional[MetadataLookup] = None,
) -> Optional[NameBuildResult]:
    """Build the name for a create or update event.

    Updates only carry the changed attributes, so they are overlaid on the
    pre-image first. ``None`` means the update touched nothing the name
    depends on.
    """

    normalised = (message or "").strip().lower()
    if normalised not in _SUPPORTED_MESSAGES:
        raise InvalidEventError(f"Unsupported message '{message}'; expected Create or Update.")

    record = target
    if normalised == "update":
        if not should_rebuild(configuration, target.attributes.keys()):
            logger.debug("[name_service] Update touched no configured attribute; skipping rebuild.")
            return None
        record = merge_images(pre_image, target)

    diagnostics = Diagnostics(tracing=configuration.tracing_enabled)
    name = build_name(configuration, record, metadata=metadata, diagnostics=diagnostics)
    logger.info(
        "[name_service] %s on %s produced %d characters for '%s'",
        normalised,
        configuration.entity or target.logical_name or "record",
        len(name),
        configuration.target_field,
    )
    return NameBuildResult(name=name, target_field=configuration.target_field, diagnostics=diagnostics)


__all__ = ["InvalidEventError", "NameBuildResult", "build_name_for_event", "should_rebuild"]
