"""Shared schema base classes for API responses."""

from pydantic import BaseModel


class ORMModel(BaseModel):
    """Base model that reads attributes from dataclasses and other objects."""

    model_config = {"from_attributes": True}
