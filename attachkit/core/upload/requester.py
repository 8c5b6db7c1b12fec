"""
Dual-channel requests.

Form requests go over the websocket when it is usable and fail over to
REST once if the socket send fails.
"""
from typing import Any, Callable, Optional

from ..logging import get_logger
from ..transport import RequestChannel, ServiceRequest, SocketChannel
from .models import CancellationToken

RequestBuilder = Callable[[], ServiceRequest]


class DualChannelRequester:
    """
    Sends service requests preferring the persistent socket.
    
    Failover is single level: a socket failure leads to exactly one REST
    attempt, and REST errors propagate.
    """
    
    def __init__(
        self,
        rest_channel: RequestChannel,
        socket_channel: Optional[SocketChannel] = None
    ):
        """
        Initialize requester.
        
        Args:
            rest_channel: Plain request/response channel
            socket_channel: Optional persistent socket channel
        """
        self._rest = rest_channel
        self._socket = socket_channel
        self._logger = get_logger('attachkit.upload.requester')
    
    async def fetch(
        self,
        build_request: RequestBuilder,
        force_rest: bool = False,
        token: Optional[CancellationToken] = None
    ) -> Any:
        """
        Perform a request.
        
        Args:
            build_request: Builds the request; called once per channel used
            force_rest: Skip the socket channel
            token: Optional cancellation token
            
        Returns:
            Decoded response body
        """
        if token:
            token.raise_if_cancelled()
        
        use_socket = (
            not force_rest
            and self._socket is not None
            and self._socket.can_accept_requests()
        )
        if use_socket:
            try:
                return await self._socket.request(build_request())
            except Exception as e:
                self._logger.warning(f"Socket request failed, failing over to REST: {e!r}")
                if token:
                    token.raise_if_cancelled()
        
        return await self._rest.request(build_request())
