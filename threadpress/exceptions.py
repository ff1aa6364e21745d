"""Domain exceptions raised by repositories and services.

Routers translate these into HTTP errors; the generation job catches them
per thread and records them in the job result.
"""


class ThreadpressError(Exception):
    """Base class for all application errors."""


class NotFoundError(ThreadpressError):
    """Requested entity does not exist."""


class ValidationError(ThreadpressError):
    """Invalid input or a status transition not allowed for the entity."""


class ConflictError(ThreadpressError):
    """Operation clashes with existing state (duplicate e-mail, claimed message)."""


class AuthError(ThreadpressError):
    """Bad credentials or an invalid/expired token."""


class SourceUnavailableError(ThreadpressError):
    """Message archive is missing, locked or unreadable."""
