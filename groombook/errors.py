"""
Error taxonomy for the booking core.

Every operation raises one of these to its immediate caller. Only
SlotConflictError is meaningfully retryable, by picking another slot.
"""


class GroombookError(Exception):
    """Base class for all booking core errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(GroombookError):
    """Unknown id, or a record that belongs to another organization"""


class ValidationError(GroombookError):
    """Missing or malformed input"""


class SlotConflictError(GroombookError):
    """Another active booking already claims the sub-time-slot on that date"""

    def __init__(self, message: str, sub_time_slot_id: int | None = None, booking_date=None):
        super().__init__(message)
        self.sub_time_slot_id = sub_time_slot_id
        self.booking_date = booking_date


class DuplicateSelectionError(GroombookError):
    """The service is already selected for the booking"""


class InvalidTransitionError(GroombookError):
    """Illegal booking status change"""


class ImmutableStateError(GroombookError):
    """Mutation attempted on a booking whose selections are frozen"""


class StorageError(GroombookError):
    """Persistence layer failure"""


class ConstraintViolation(StorageError):
    """A database uniqueness or foreign key constraint rejected the write"""
