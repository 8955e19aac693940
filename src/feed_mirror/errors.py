"""Exceptions raised by the import engine.

Only ConfigurationError and FetchError abort a run. Everything else is
handled per item (or per term) by the importer.
"""


class MirrorError(Exception):
    """Base class for Feed Mirror errors."""


class ConfigurationError(MirrorError):
    """Raised when required settings are missing or invalid."""


class FetchError(MirrorError):
    """Raised when the remote feed cannot be retrieved."""

    code = "autoblogapi_http_error"

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class FetchTransportError(FetchError):
    """Network failure or timeout while talking to the remote feed."""


class FetchStatusError(FetchError):
    """The remote feed answered with an unexpected HTTP status."""

    code = "autoblogapi_bad_status"

    def __init__(self, status_code: int, url: str | None = None):
        super().__init__(f"Unexpected status code from remote API: {status_code}", url)
        self.status_code = status_code


class FetchPayloadError(FetchError):
    """The remote feed body is not a JSON list."""

    code = "autoblogapi_bad_payload"


class InsertError(MirrorError):
    """The local store rejected a new item."""


class TermCreationError(MirrorError):
    """A local term could not be created."""


class MediaError(MirrorError):
    """Base class for featured media failures."""

    def __init__(self, message: str, url: str | None = None):
        super().__init__(message)
        self.url = url


class MediaFetchError(MediaError):
    """The linked media resource could not be queried."""


class MediaDownloadError(MediaError):
    """The image could not be downloaded or written."""
