"""Resolution policy values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple

from .enums import ResolutionType

_DEFERRING_RESOLUTIONS = frozenset({ResolutionType.MANUAL, ResolutionType.MERGED})


class RuleKey(NamedTuple):
    entity_type: str
    property_name: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class ResolutionRule:
    """Policy deciding which side wins for an entity type or one of its properties.

    ``property_name`` of ``None`` marks the entity-wide default. Lower
    ``priority`` values are more important; the value is informational once a
    table is keyed, since each key holds a single rule.
    """

    entity_type: str
    default_resolution: ResolutionType
    property_name: str | None = None
    require_manual_review: bool = False
    priority: int = 100
    description: str | None = None
    is_active: bool = True

    def __post_init__(self) -> None:
        if not self.entity_type or not self.entity_type.strip():
            raise ValueError("rule entity_type is required")

    @property
    def key(self) -> RuleKey:
        return RuleKey(self.entity_type, self.property_name or None)

    @property
    def defers_to_manual_review(self) -> bool:
        """Whether automatic resolution must hand this conflict to an operator."""
        return self.require_manual_review or self.default_resolution in _DEFERRING_RESOLUTIONS
