from typing import Any


class ProxyError(Exception):
    """Base class for errors that map onto an HTTP response"""

    status_code = 500

    def __init__(self, error: Any, status_code: int | None = None) -> None:
        super().__init__(error if isinstance(error, str) else repr(error))
        self.error = error
        if status_code is not None:
            self.status_code = status_code


class InvalidInput(ProxyError):
    """Request data is missing or malformed"""

    status_code = 400


class Unauthorized(ProxyError):
    """Bearer credential is missing or malformed"""

    status_code = 401


class UpstreamError(ProxyError):
    """The upstream API answered with a non-success status"""

    def __init__(self, status_code: int, body: Any) -> None:
        super().__init__(body, status_code=status_code)


class TransportError(ProxyError):
    """A collaborator could not be reached"""

    status_code = 500


class PublishFailed(ProxyError):
    """A spreadsheet step failed while publishing the report"""

    status_code = 500

    def __init__(self, step: str, detail: str) -> None:
        super().__init__(f"Failed to {step}: {detail}")
        self.step = step
        self.detail = detail
