from ssdpsearch.session import SearchSession, SearchSessionObserver, SessionConfiguration
from ssdpsearch.protocol.discovery import discover
from ssdpsearch.protocol.response import SearchResponse
from ssdpsearch.errors import SearchSessionError, AddressResolutionError, SearchAborted
from ssdpsearch.constants import SessionState

__all__ = ["SearchSession", "SearchSessionObserver", "SessionConfiguration", "discover",
           "SearchResponse", "SearchSessionError", "AddressResolutionError",
           "SearchAborted", "SessionState"]
