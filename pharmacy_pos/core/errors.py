# pharmacy_pos/core/errors.py


class PosError(Exception):
    """Base class for every error raised by the POS core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailure(PosError, ValueError):
    """Input rejected locally, before any network call or database write."""


class NotFoundError(PosError):
    pass


class BusinessError(PosError):
    """A request that is well formed but violates a business rule (stock, SKU clash...)."""


class RemoteError(PosError):
    """A user-initiated call to a collaborator did not succeed."""


class RemoteRejection(RemoteError):
    """The collaborator answered with a 4xx/5xx status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class TransportFailure(RemoteError):
    """The request never got an answer (network loss, connection refused...)."""
