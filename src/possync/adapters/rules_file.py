"""Load resolution rule overrides from a TOML file.

Example::

    [[rules]]
    entity_type = "Product"
    property_name = "Price"
    resolution = "RemoteWins"
    priority = 20
    description = "HQ controls pricing"
"""

from __future__ import annotations

import logging
import tomllib
from typing import TYPE_CHECKING

from pydantic import (
    BaseModel,
    ConfigDict,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from possync.config import ConfigurationError, MissingConfigurationError
from possync.domain.model import ResolutionRule, ResolutionType

if TYPE_CHECKING:
    from pathlib import Path

log = logging.getLogger(__name__)

DEFAULT_RULE_PRIORITY = 100


class RulesFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class RuleEntry(RulesFileModel):
    entity_type: StrictStr
    resolution: ResolutionType
    property_name: StrictStr | None = None
    require_manual_review: StrictBool = False
    priority: StrictInt = DEFAULT_RULE_PRIORITY
    description: StrictStr | None = None
    is_active: StrictBool = True

    @field_validator("entity_type")
    @classmethod
    def _require_entity_type(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped

    @field_validator("property_name")
    @classmethod
    def _blank_property_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    def to_rule(self) -> ResolutionRule:
        return ResolutionRule(
            entity_type=self.entity_type,
            property_name=self.property_name,
            default_resolution=self.resolution,
            require_manual_review=self.require_manual_review,
            priority=self.priority,
            description=self.description,
            is_active=self.is_active,
        )


class RulesDocument(RulesFileModel):
    rules: list[RuleEntry] = []


def _describe(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )


def load_rules(path: Path) -> list[ResolutionRule]:
    """Parse every ``[[rules]]`` table in ``path`` into a ``ResolutionRule``."""

    try:
        with path.open("rb") as rules_file:
            raw = tomllib.load(rules_file)
    except FileNotFoundError as exc:
        raise MissingConfigurationError(
            f"Rules file not found: {path}", source=str(path)
        ) from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(
            f"Rules file {path} is not valid TOML: {exc}", source=str(path)
        ) from exc

    try:
        document = RulesDocument.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid rules file {path}: {_describe(exc)}", source=str(path)
        ) from exc

    rules = [entry.to_rule() for entry in document.rules]
    log.info("Loaded %d resolution rules from %s", len(rules), path)
    return rules
