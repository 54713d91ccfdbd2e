"""Runtime-mutable table of conflict resolution rules.

Lookups run without locking against an immutable snapshot of the table.
Writers serialize on a lock, copy the snapshot, apply their change and publish
the new mapping in a single assignment.
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from possync.domain.model import ResolutionRule, ResolutionType, RuleKey

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

log = logging.getLogger(__name__)

FALLBACK_DESCRIPTION: Final[str] = "Default: remote (head office) wins"
FALLBACK_PRIORITY: Final[int] = 1000

DEFAULT_CONFLICT_RULES: Final[tuple[ResolutionRule, ...]] = (
    # the terminal that rang up a sale is the authority on it
    ResolutionRule(
        entity_type="Receipt",
        default_resolution=ResolutionType.LOCAL_WINS,
        priority=10,
        description="Receipts always use local data for financial integrity",
    ),
    ResolutionRule(
        entity_type="Order",
        default_resolution=ResolutionType.LOCAL_WINS,
        priority=10,
        description="Orders use local data for transaction integrity",
    ),
    # head office owns prices and catalog master data
    ResolutionRule(
        entity_type="Product",
        property_name="Price",
        default_resolution=ResolutionType.REMOTE_WINS,
        priority=20,
        description="HQ controls pricing",
    ),
    ResolutionRule(
        entity_type="Product",
        property_name="CostPrice",
        default_resolution=ResolutionType.REMOTE_WINS,
        priority=20,
        description="HQ controls cost prices",
    ),
    ResolutionRule(
        entity_type="Product",
        default_resolution=ResolutionType.REMOTE_WINS,
        priority=30,
        description="HQ controls product master data",
    ),
    ResolutionRule(
        entity_type="Category",
        default_resolution=ResolutionType.REMOTE_WINS,
        priority=30,
        description="HQ controls categories",
    ),
    ResolutionRule(
        entity_type="Inventory",
        default_resolution=ResolutionType.LAST_WRITE_WINS,
        priority=40,
        description="Latest inventory count used",
    ),
    ResolutionRule(
        entity_type="StockMovement",
        default_resolution=ResolutionType.LOCAL_WINS,
        priority=40,
        description="Stock movements from local store",
    ),
    # balances that can be abused need an operator
    ResolutionRule(
        entity_type="Customer",
        property_name="PointsBalance",
        default_resolution=ResolutionType.MANUAL,
        require_manual_review=True,
        priority=50,
        description="Points changes require manual review",
    ),
    ResolutionRule(
        entity_type="LoyaltyMember",
        property_name="Points",
        default_resolution=ResolutionType.MANUAL,
        require_manual_review=True,
        priority=50,
        description="Loyalty points require manual review",
    ),
)


def fallback_rule(entity_type: str) -> ResolutionRule:
    """Rule applied when nothing in the table matches ``entity_type``."""

    return ResolutionRule(
        entity_type=entity_type,
        default_resolution=ResolutionType.REMOTE_WINS,
        priority=FALLBACK_PRIORITY,
        description=FALLBACK_DESCRIPTION,
    )


def _index(rules: Iterable[ResolutionRule]) -> Mapping[RuleKey, ResolutionRule]:
    indexed: dict[RuleKey, ResolutionRule] = {}
    for rule in rules:
        indexed[rule.key] = rule
    return MappingProxyType(indexed)


class RuleTable:
    """Thread-safe store of resolution rules keyed by entity type and property."""

    def __init__(
        self,
        rules: Iterable[ResolutionRule] | None = None,
        *,
        defaults: Iterable[ResolutionRule] = DEFAULT_CONFLICT_RULES,
    ) -> None:
        self._defaults = tuple(defaults)
        self._write_lock = threading.Lock()
        self._rules = _index(self._defaults if rules is None else rules)

    def __len__(self) -> int:
        return len(self._rules)

    def get_applicable_rule(
        self,
        entity_type: str,
        property_name: str | None = None,
    ) -> ResolutionRule:
        """Return the property rule, else the entity-wide rule, else the fallback."""

        snapshot = self._rules
        if property_name:
            rule = snapshot.get(RuleKey(entity_type, property_name))
            if rule is not None and rule.is_active:
                return rule
        rule = snapshot.get(RuleKey(entity_type, None))
        if rule is not None and rule.is_active:
            return rule
        return fallback_rule(entity_type)

    def property_rule(self, entity_type: str, property_name: str) -> ResolutionRule | None:
        """Return the active rule keyed exactly on ``property_name``, if any."""

        rule = self._rules.get(RuleKey(entity_type, property_name))
        return rule if rule is not None and rule.is_active else None

    def rules_for_fields(
        self,
        entity_type: str,
        fields: Iterable[str],
    ) -> dict[str, ResolutionRule]:
        """Resolve the applicable rule for each field of a conflicting record."""

        return {name: self.get_applicable_rule(entity_type, name) for name in fields}

    def get_all_rules(self) -> list[ResolutionRule]:
        return sorted(self._rules.values(), key=lambda rule: (rule.priority, *_sort_key(rule)))

    def add_or_update_rule(self, rule: ResolutionRule | None) -> None:
        if rule is None:
            raise ValueError("rule is required")
        with self._write_lock:
            updated = dict(self._rules)
            updated[rule.key] = rule
            self._rules = MappingProxyType(updated)
        log.info(
            "Rule added/updated for %s.%s: %s",
            rule.entity_type,
            rule.property_name or "*",
            rule.default_resolution,
        )

    def remove_rule(self, entity_type: str, property_name: str | None = None) -> bool:
        key = RuleKey(entity_type, property_name or None)
        with self._write_lock:
            if key not in self._rules:
                return False
            updated = dict(self._rules)
            del updated[key]
            self._rules = MappingProxyType(updated)
        log.info("Rule removed for %s.%s", entity_type, property_name or "*")
        return True

    def reset_to_default_rules(self) -> None:
        with self._write_lock:
            self._rules = _index(self._defaults)
        log.info("Conflict resolution rules reset to defaults")


def _sort_key(rule: ResolutionRule) -> tuple[str, str]:
    return rule.entity_type, rule.property_name or ""
