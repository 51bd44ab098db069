"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.

Draft validation problems are *not* raised one by one; they are collected
into ordered lists of messages.  The exceptions below are reserved for
boundary violations and for attempts to act on an invalid draft.
"""

from __future__ import annotations


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class AllocationMismatchError(ValidationError):
    """A draft was converted into an instruction while it has violations."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors) or "Draft is not valid")
        self.errors = list(errors)


class LockedSlotError(ValidationError):
    """A delivered (locked) slot was targeted by a mutation."""


class RemovalBlockedError(ValidationError):
    """An item with delivered history was staged for removal."""


class SaveInProgressError(ValidationError):
    """The session is waiting on the backend and cannot accept changes."""


class SaveFailedError(DomainException):
    """The backend rejected the batch edit.

    ``errors`` maps a payload field to the backend's messages for it, when
    the backend returned structured validation errors.
    """

    def __init__(self, message: str, errors: dict[str, list[str]] | None = None) -> None:
        super().__init__(message)
        self.errors = dict(errors or {})

    @property
    def first_error(self) -> str:
        for messages in self.errors.values():
            if messages:
                return messages[0]
        return str(self)
