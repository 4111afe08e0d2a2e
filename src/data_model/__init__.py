"""Shared data model primitives."""

from src.data_model.base import MutableBaseModel, StrictBaseModel


__all__ = ["MutableBaseModel", "StrictBaseModel"]
