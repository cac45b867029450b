"""
Interaction data models.
"""

from typing import Optional
from pydantic import BaseModel, Field


class Interaction(BaseModel):
    """A single user interaction with a product, routine or ingredient."""
    id: str = Field(description="Interaction document id")
    user_id: str = Field(description="Acting user")
    entity_id: str = Field(description="Target entity id")
    entity_type: str = Field(description="'product', 'routine' or 'ingredient'")
    type: str = Field(description="Interaction type, e.g. 'like'")
    follicle_id: Optional[str] = Field(default=None, description="Follicle id of the acting user at the time of the interaction")
    timestamp: str = Field(description="Creation time (ISO format)")
    routine_id: Optional[str] = Field(default=None, description="Routine that caused a 'routine' product interaction")
    created_routine_id: Optional[str] = Field(default=None, description="Copy created by an 'adapt' routine interaction")
