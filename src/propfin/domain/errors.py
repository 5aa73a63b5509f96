"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class InvalidDateError(ValidationError):
    """A date or reference date could not be parsed or is out of range."""


class InvalidDateRangeError(ValidationError):
    """A period is malformed, inverted, or not yet resolved."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class SourceUnavailableError(DomainError):
    """The record source could not be queried.

    Raised instead of returning an empty result, so callers can tell
    "no data for the period" apart from "no data could be fetched".
    """


def invalid_date(value: object, reason: object = None) -> str:
    """Return message for an unparseable date."""
    if reason:
        return f"Could not parse date '{value}': {reason}"
    return f"Could not parse date '{value}'"


def inverted_range(start_date: object, end_date: object) -> str:
    """Return message for a period whose start is after its end."""
    return f"Start date {start_date} is after end date {end_date}"


def unresolved_range(start_date: object, end_date: object) -> str:
    """Return message for a period missing one of its bounds."""
    return (
        f"Period is not resolved (start={start_date or '-'}, end={end_date or '-'}); "
        "both dates are required"
    )


def unknown_preset(preset: str, supported: list[str]) -> str:
    """Return message for an unrecognized period preset."""
    return f"Unknown period preset: '{preset}'. Supported presets: {', '.join(supported)}"


def source_unavailable(operation: str, error: object) -> str:
    """Return message when the record source fails."""
    return f"Record source unavailable while {operation}: {error}"


def property_not_found(property_id: str) -> str:
    """Return message for missing property."""
    return f"Property '{property_id}' not found"
