"""
Identifier Service

Generates the globally unique string keys for new records.
"""

import uuid
from abc import ABC, abstractmethod
from functools import lru_cache


class BaseIdGenerator(ABC):
    """Interface for identifier providers."""

    @abstractmethod
    def new_id(self) -> str:
        """Return a fresh identifier of at most 44 characters."""
        pass


class UuidGenerator(BaseIdGenerator):
    """Random UUID4 identifiers in canonical 36-character form."""

    def new_id(self) -> str:
        return str(uuid.uuid4())


@lru_cache()
def get_id_generator() -> BaseIdGenerator:
    """Get the process-wide identifier generator."""
    return UuidGenerator()
