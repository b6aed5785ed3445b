"""Error taxonomy shared by the services and both front ends."""


class JemzyError(Exception):
    """Base error. `code` is machine readable, `status` is the HTTP status."""

    code = "error"
    status = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidArgument(JemzyError):
    code = "invalid_argument"
    status = 400


class Unauthorized(JemzyError):
    code = "unauthorized"
    status = 401


class NotFound(JemzyError):
    code = "not_found"
    status = 404


class Conflict(JemzyError):
    """Lost a race for a one-shot action (already claimed, already attacked)."""

    code = "conflict"
    status = 409


class Transient(JemzyError):
    """Storage unavailable or timed out. Never retried here."""

    code = "transient"
    status = 503
