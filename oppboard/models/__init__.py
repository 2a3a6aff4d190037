"""Oppboard models - re-exports all models and Base.metadata."""

from .base import Base
from .location import Location
from .pipeline import Pipeline
from .opportunity import Opportunity
from .custom_field import CustomField

__all__ = [
    "Base",
    "Location",
    "Pipeline",
    "Opportunity",
    "CustomField",
]
