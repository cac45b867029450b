"""
Interaction types, allowed combinations and the user-document cache projection.
"""
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple


class EntityType(Enum):
    """Kinds of entities users interact with."""
    PRODUCT = "product"
    ROUTINE = "routine"
    INGREDIENT = "ingredient"

    @property
    def collection_name(self) -> str:
        return f"{self.value}_interactions"

    @classmethod
    def from_path(cls, name: str) -> "EntityType":
        """Accept singular or plural path segments ('product', 'products')."""
        name = (name or "").strip().lower()
        for member in cls:
            if name in (member.value, f"{member.value}s"):
                return member
        raise ValueError(f"Unknown entity type: {name}")

    @classmethod
    def is_valid(cls, name: str) -> bool:
        try:
            cls.from_path(name)
        except ValueError:
            return False
        return True


class InteractionType(Enum):
    """Interaction kinds across all entity types."""
    LIKE = "like"
    DISLIKE = "dislike"
    SAVE = "save"
    VIEW = "view"
    ADAPT = "adapt"
    AVOID = "avoid"
    ALLERGIC = "allergic"
    ROUTINE = "routine"

    @classmethod
    def is_valid(cls, value: str) -> bool:
        return value in {member.value for member in cls}

    @classmethod
    def get_allowed_types(cls, entity_type: EntityType, include_internal: bool = False) -> List[str]:
        allowed = ALLOWED_TYPES[entity_type]
        return [t.value for t in allowed if include_internal or t not in INTERNAL_TYPES]


ALLOWED_TYPES: Dict[EntityType, Tuple[InteractionType, ...]] = {
    EntityType.PRODUCT: (
        InteractionType.LIKE,
        InteractionType.DISLIKE,
        InteractionType.SAVE,
        InteractionType.VIEW,
        InteractionType.ROUTINE,
    ),
    EntityType.ROUTINE: (
        InteractionType.LIKE,
        InteractionType.DISLIKE,
        InteractionType.ADAPT,
        InteractionType.SAVE,
        InteractionType.VIEW,
    ),
    EntityType.INGREDIENT: (
        InteractionType.LIKE,
        InteractionType.DISLIKE,
        InteractionType.AVOID,
        InteractionType.ALLERGIC,
        InteractionType.VIEW,
    ),
}

# Written by routine mutations only, never through the interactions API.
INTERNAL_TYPES = frozenset({InteractionType.ROUTINE})

# (entity, interaction) -> array field on the user document
CACHE_FIELD_MAP: Dict[Tuple[EntityType, InteractionType], str] = {
    (EntityType.PRODUCT, InteractionType.LIKE): "liked_products",
    (EntityType.PRODUCT, InteractionType.DISLIKE): "disliked_products",
    (EntityType.PRODUCT, InteractionType.SAVE): "saved_products",
    (EntityType.PRODUCT, InteractionType.ROUTINE): "routine_products",
    (EntityType.ROUTINE, InteractionType.LIKE): "liked_routines",
    (EntityType.ROUTINE, InteractionType.DISLIKE): "disliked_routines",
    (EntityType.ROUTINE, InteractionType.SAVE): "saved_routines",
    (EntityType.ROUTINE, InteractionType.ADAPT): "adapted_routines",
    (EntityType.INGREDIENT, InteractionType.LIKE): "liked_ingredients",
    (EntityType.INGREDIENT, InteractionType.DISLIKE): "disliked_ingredients",
    (EntityType.INGREDIENT, InteractionType.AVOID): "avoid_ingredients",
    (EntityType.INGREDIENT, InteractionType.ALLERGIC): "allergic_ingredients",
}

CREATED_ROUTINES_FIELD = "created_routines"


def get_cache_field(entity_type: EntityType, interaction_type: InteractionType) -> Optional[str]:
    return CACHE_FIELD_MAP.get((entity_type, interaction_type))


class Sentiment(Enum):
    """Like/dislike state of one user towards one entity.

    Exactly one state holds at a time; moving to LIKED or DISLIKED
    displaces the opposite interaction.
    """
    NONE = "none"
    LIKED = "liked"
    DISLIKED = "disliked"

    @classmethod
    def from_types(cls, present: Iterable[InteractionType]) -> "Sentiment":
        present = set(present)
        if InteractionType.LIKE in present:
            return cls.LIKED
        if InteractionType.DISLIKE in present:
            return cls.DISLIKED
        return cls.NONE

    def transition(self, interaction_type: InteractionType) -> Tuple["Sentiment", Optional[InteractionType]]:
        """New state after creating ``interaction_type`` and the type it displaces."""
        if interaction_type is InteractionType.LIKE:
            return Sentiment.LIKED, InteractionType.DISLIKE if self is Sentiment.DISLIKED else None
        if interaction_type is InteractionType.DISLIKE:
            return Sentiment.DISLIKED, InteractionType.LIKE if self is Sentiment.LIKED else None
        return self, None


class CreateOutcome(Enum):
    """Result of recording an interaction; repeats are not errors."""
    CREATED = "created"
    ALREADY_EXISTS = "already_exists"
