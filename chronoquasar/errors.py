"""Domain errors raised by the store and services, mapped to HTTP in main.py."""

from datetime import datetime


class NotFoundError(Exception):
    """Domain, article or focus group not found."""

    def __init__(self, message: str = "Resource not found"):
        self.message = message
        super().__init__(self.message)


class ValidationError(Exception):
    """A required field is missing or malformed."""

    def __init__(self, message: str = "Validation error"):
        self.message = message
        super().__init__(self.message)


class CredentialMissingError(Exception):
    """No analytics API key is configured."""

    def __init__(self, message: str = "Plausible API key not configured"):
        self.message = message
        super().__init__(self.message)


class ProviderQueryError(Exception):
    """The analytics provider answered with a non-success status.

    ``status`` is 0 when the request never got a response (timeout,
    connection error).
    """

    def __init__(self, status: int, body: str = ""):
        self.status = status
        self.body = body
        super().__init__(f"Plausible API error: {status} - {body[:500]}")


def validate_session_date(date: str) -> str:
    """Session keys are calendar dates, ``YYYY-MM-DD``."""
    try:
        datetime.strptime(date, "%Y-%m-%d")
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date: {date!r}. Expected YYYY-MM-DD") from None
    return date


def validate_start_time(start_time: str) -> str:
    """Focus-set start times are local clock times, ``HH:MM``."""
    try:
        datetime.strptime(start_time, "%H:%M")
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid startTime: {start_time!r}. Expected HH:MM") from None
    return start_time
