"""Domain-level exceptions.

Business rule violations are subclasses of DomainException. A bulk price
update recovers them per item and reports them in its ``errors`` list.

Failures of the persistence machinery are InfrastructureError. They are
never recovered per item: they abort and roll back the whole batch.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class UnitConversionError(DomainException):
    """A quantity cannot be converted between the requested units."""


class InfrastructureError(Exception):
    """The storage layer failed (connection, lock, constraint machinery)."""


class ConcurrencyError(InfrastructureError):
    """A row lock could not be acquired (timeout or deadlock)."""
