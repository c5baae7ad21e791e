"""
Domain Layer - Core DDD building blocks

- Entities: Objects with identity and lifecycle
- Value Objects: Immutable objects defined by their attributes
- Events: Domain events published on the change feed
- Exceptions: Domain-specific error handling
"""

from storefront.core.domain.entities import AuditableEntity, Entity, generate_uuid_str
from storefront.core.domain.events import DomainEvent
from storefront.core.domain.exceptions import (
    ConcurrencyException,
    DomainException,
    EntityNotFoundException,
    PartialApplicationException,
    ValidationException,
)
from storefront.core.domain.value_objects import Percentage, StringEnum, ValueObject

__all__ = [
    # Entities
    "Entity",
    "AuditableEntity",
    "generate_uuid_str",
    # Value Objects
    "ValueObject",
    "Percentage",
    "StringEnum",
    # Events
    "DomainEvent",
    # Exceptions
    "DomainException",
    "ValidationException",
    "EntityNotFoundException",
    "PartialApplicationException",
    "ConcurrencyException",
]
