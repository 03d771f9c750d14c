class DealError(Exception):
    """Base class for rejected deal operations.

    ``message`` is a human-readable reason suitable for returning to the caller.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DealError):
    """Required submission or query fields are missing or invalid."""


class LocationResolutionError(DealError):
    """A postal code was supplied but could not be placed on the map."""


class NotFoundError(DealError):
    """The referenced deal does not exist or is no longer visible."""


class IdentityExhaustion(DealError):
    """The store can no longer assign fresh deal ids."""
