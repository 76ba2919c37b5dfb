# barbershop/errors.py


class BookingError(Exception):
    """Base class for booking domain errors."""


class InvalidScheduleFormat(BookingError, ValueError):
    """A schedule time is not a valid HH:MM value, or a day window is empty."""


class InvalidTransition(BookingError):
    def __init__(self, action: str, current: str, actor: str):
        self.action = action
        self.current = current
        self.actor = actor
        super().__init__(f"Cannot {action} an appointment in state '{current}' as {actor}")


class SlotUnavailable(BookingError):
    """The requested start time is not in the barber's current slot list."""


class SlotConflict(BookingError):
    """Another non-cancelled appointment already holds the slot."""


class IncompleteBooking(BookingError):
    """A booking step was left before its selection was made."""


class ProfileNotFound(BookingError):
    pass


class ProfileNotYetAvailable(BookingError):
    """The account exists but its profile has not been written yet."""


class ProviderNotConfigured(BookingError):
    pass


class ProviderError(BookingError):
    pass


class RecordNotFound(BookingError):
    pass
