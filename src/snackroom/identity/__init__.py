"""Durable identity registry."""

from snackroom.identity.base import IdentityRegistry
from snackroom.identity.memory import InMemoryIdentityRegistry

__all__ = ["IdentityRegistry", "InMemoryIdentityRegistry"]
