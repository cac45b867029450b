"""
Data models for the score store.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class EntityKind(Enum):
    """Entity kinds that carry persisted match scores."""
    PRODUCT = "product"
    ROUTINE = "routine"

    @property
    def score_collection_name(self) -> str:
        return f"{self.value}_scores"

    @property
    def cache_key_prefix(self) -> str:
        return "user-scores" if self is EntityKind.PRODUCT else "user-routine-scores"

    @classmethod
    def from_path(cls, name: str) -> "EntityKind":
        """Accept 'product', 'products', 'routine' or 'routines'."""
        return cls(name[:-1] if name.endswith("s") else name)


class RescoreOutcome(Enum):
    """Per-entity outcome of a rescoring pass."""
    OK = "ok"
    FAILED = "failed"


@dataclass
class RescoreItem:
    """Outcome for one entity."""
    entity_id: str
    outcome: RescoreOutcome
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "outcome": self.outcome.value,
            "reason": self.reason,
        }


@dataclass
class RescoreReport:
    """Result-per-item report of a rescoring pass."""
    entity_type: str
    items: List[RescoreItem] = field(default_factory=list)

    def ok(self, entity_id: str) -> None:
        self.items.append(RescoreItem(entity_id, RescoreOutcome.OK))

    def failed(self, entity_id: str, reason: str) -> None:
        self.items.append(RescoreItem(entity_id, RescoreOutcome.FAILED, reason))

    def extend(self, other: "RescoreReport") -> None:
        self.items.extend(other.items)

    @property
    def ok_count(self) -> int:
        return sum(1 for item in self.items if item.outcome is RescoreOutcome.OK)

    @property
    def failed_count(self) -> int:
        return sum(1 for item in self.items if item.outcome is RescoreOutcome.FAILED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_type": self.entity_type,
            "ok": self.ok_count,
            "failed": self.failed_count,
            "items": [item.to_dict() for item in self.items],
        }
