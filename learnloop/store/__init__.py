"""Persistence for templates, questions, reviews and practice data."""

from .base import QuestionStore
from .memory import InMemoryStore, StoreSnapshot

__all__ = ["QuestionStore", "InMemoryStore", "StoreSnapshot"]
