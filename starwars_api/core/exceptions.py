"""Errors raised while talking to the upstream Star Wars API."""


class SwapiError(Exception):
    """Upstream call failed (transport error or unexpected status)."""

    status_code: int = 502

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class SwapiNotFoundError(SwapiError):
    """Upstream answered 404 for the requested resource."""

    status_code = 404


class SwapiUnavailableError(SwapiError):
    """No upstream client is configured (application not started)."""

    status_code = 503
