"""
Protocol definitions for transports.

The uploaders depend on these interfaces only, so tests can inject fakes
and the process-wide channels can be shared between uploads.
"""
from typing import Any, Callable, Dict, Optional, Protocol

from .models import HttpResponse, ServiceRequest

ProgressCallback = Callable[[float], None]


class RequestChannel(Protocol):
    """A channel able to carry service requests."""
    
    async def request(self, request: ServiceRequest) -> Any:
        """
        Send a request and return the decoded response body.
        
        Raises:
            ConnectivityFailure: If the transport failed
            ServiceRequestError: If the service answered with an error
        """
        ...


class SocketChannel(RequestChannel, Protocol):
    """A persistent, multiplexed channel that may be temporarily unusable."""
    
    def can_accept_requests(self) -> bool:
        """Returns True if the socket is currently connected and open."""
        ...


class CdnTransport(Protocol):
    """HTTP transport towards storage origins."""
    
    async def post(
        self,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
        progress: Optional[ProgressCallback] = None
    ) -> HttpResponse:
        """
        POST to a storage origin.
        
        Returns the response whatever its status. Transport failures
        raise ConnectivityFailure.
        """
        ...
    
    async def put(
        self,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
        progress: Optional[ProgressCallback] = None
    ) -> HttpResponse:
        """PUT to a storage origin. Same contract as post()."""
        ...
    
    async def open_session(self, url: str, headers: Dict[str, str]) -> HttpResponse:
        """
        Bodiless POST that starts a resumable session.
        
        ``headers`` declare the size of the upload to come in
        Content-Length. Same contract as post().
        """
        ...
