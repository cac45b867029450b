"""
Request models for routine mutations.
"""
from typing import List

from pydantic import BaseModel, Field

from match_service.models import RoutineStep


class RoutinePayload(BaseModel):
    """Body of POST /routines and PUT /routines/<id>."""
    name: str = Field(min_length=1, description="Routine name")
    description: str = Field(default="", description="Routine description")
    is_public: bool = Field(default=True, description="Visible to other users")
    steps: List[RoutineStep] = Field(min_length=1, description="At least one step")
