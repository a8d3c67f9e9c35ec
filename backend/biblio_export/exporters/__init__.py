"""Metadata encoders for the supported dialects."""

from .base import Encoder
from .registry import DialectDescriptor, DialectRegistry, DuplicateDialectError, build_registry

__all__ = [
    "DialectDescriptor",
    "DialectRegistry",
    "DuplicateDialectError",
    "Encoder",
    "build_registry",
]
