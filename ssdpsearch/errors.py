"""Errors surfaced by a search session."""


class SearchSessionError(Exception):
    """Base class for search session errors."""


class AddressResolutionError(SearchSessionError):
    """The configured host/port could not be resolved to a socket address."""

    def __init__(self, host: str, port: int):
        super().__init__(f"cannot resolve address {host}:{port}")
        self.host = host
        self.port = port


class SearchAborted(SearchSessionError):
    """A search session stopped because of an unrecoverable error.

    The underlying exception is kept on ``error`` and chained as ``__cause__``.
    """

    def __init__(self, error: BaseException):
        super().__init__(f"search aborted: {error}")
        self.error = error
        self.__cause__ = error
