# postapi/errors.py
"""
Error kinds raised by handlers and the store.

Every ``DispatchError`` is turned into a non-2xx response by the dispatcher;
nothing below is fatal to the process except ``StartupError``.
"""


class DispatchError(Exception):
    kind = "DispatchError"
    status_code = 500

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.kind)
        self.detail = detail or self.kind


class NotFound(DispatchError):
    """The requested resource (or route) does not exist."""

    kind = "NotFound"
    status_code = 404


class StoreFailure(DispatchError):
    """The store was unavailable or rejected the operation."""

    kind = "StoreFailure"
    status_code = 500


class ValidationFailure(DispatchError):
    """Malformed caller input."""

    kind = "ValidationFailure"
    status_code = 400


class ResponseAlreadySent(RuntimeError):
    pass


class StartupError(RuntimeError):
    pass
