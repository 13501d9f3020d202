"""Exceptions raised by the fetch pipeline and the search tool."""


class MypiError(Exception):
    """Base class for every error raised by mypi tools."""


class NetworkError(MypiError):
    """The HTTP transport failed (DNS, connect, TLS, read)."""


class TooManyRedirects(MypiError):
    def __init__(self, url: str):
        super().__init__("Too many redirects")
        self.url = url


class Aborted(MypiError):
    """The host cancelled the invocation before or during a request."""

    def __init__(self, message: str = "Request aborted"):
        super().__init__(message)


class UpstreamStatusError(MypiError):
    def __init__(self, status_code: int, message: str = ""):
        super().__init__(message or f"Upstream returned status {status_code}")
        self.status_code = status_code


class BlockedError(MypiError):
    """A challenge page was served on both the local and the proxy path."""


class ConfigError(MypiError):
    pass


class SearchError(MypiError):
    pass
