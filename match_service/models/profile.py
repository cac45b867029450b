"""
Hair profile data models.

This module contains Pydantic models for the five categorical hair
attributes a follicle id is derived from.
"""

from typing import Literal
from pydantic import BaseModel, Field


HairType = Literal["straight", "wavy", "curly", "coily", "protective"]
Level = Literal["low", "medium", "high"]
Thickness = Literal["fine", "medium", "coarse"]
Damage = Literal["none", "some", "severe"]

CORE_ANALYSIS_FIELDS = ("hair_type", "porosity", "density", "thickness", "damage")


class HairAnalysis(BaseModel):
    """Result of a user's hair analysis quiz."""
    hair_type: HairType = Field(description="Curl pattern / texture")
    porosity: Level = Field(description="How readily hair absorbs moisture")
    density: Level = Field(description="Strands per square inch")
    thickness: Thickness = Field(description="Diameter of individual strands")
    damage: Damage = Field(description="Level of chemical or heat damage")

    def core_fields(self) -> tuple:
        """Attribute tuple the follicle id is derived from."""
        return tuple(getattr(self, name) for name in CORE_ANALYSIS_FIELDS)
