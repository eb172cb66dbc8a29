"""Exception hierarchy for the smart bin backend.

Every service error derives from :class:`SmartBinError` and carries the HTTP
status the API layer answers with::

    SmartBinError (500)
    ├── ValidationError   (400 - missing or out-of-range field)
    ├── NotFoundError     (404 - unknown area, device, bin or correlation id)
    ├── ConflictError     (409 - duplicate identity)
    └── PersistenceError  (500 - database failure)

Broker unavailability is not an exception: ``ConnectionManager.publish``
returns ``False`` instead.
"""


class SmartBinError(Exception):
    """Base exception for all application errors."""

    http_status: int = 500

    def __init__(self, message: str = "", *, detail: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


class ValidationError(SmartBinError):
    """Caller supplied invalid or incomplete input."""

    http_status: int = 400


class NotFoundError(SmartBinError):
    """Referenced entity does not exist."""

    http_status: int = 404


class ConflictError(SmartBinError):
    """Identity already taken."""

    http_status: int = 409


class PersistenceError(SmartBinError):
    """Database write or read failed."""

    http_status: int = 500
