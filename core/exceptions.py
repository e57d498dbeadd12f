# core/exceptions.py


class ShelfmateError(Exception):
    """Base class for all domain errors raised by the services."""

    message = "Something went wrong"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


class Unauthorized(ShelfmateError):
    message = "You need to sign in"


class NotFound(ShelfmateError):
    """The entity does not exist or does not belong to the requesting user."""
    message = "Not found"


class ConflictAlreadyLinked(ShelfmateError):
    message = "This book is already linked"


class ValidationError(ShelfmateError):
    message = "Invalid input"


class UpstreamFailure(ShelfmateError):
    """The database or the cache store could not be reached."""
    message = "The service is temporarily unavailable"
