"""
Websocket channel to the chat service.

Requests are multiplexed over one persistent socket. Each frame is a JSON
object; requests carry an ``id`` which the matching response echoes::

    -> {"type": "request", "id": 7, "verb": "GET", "path": "/v3/...", "body": null}
    <- {"type": "response", "id": 7, "status": 200, "body": {...}}
"""
import asyncio
import itertools
from typing import Any, Dict, Optional

import aiohttp

from ..exceptions import CONNECTIVITY_ERRORS, ConnectivityFailure, ServiceRequestError
from ..logging import get_logger
from .models import ServiceRequest


class WebSocketChannel:
    """
    SocketChannel implementation over an aiohttp websocket.
    
    Example:
        >>> channel = WebSocketChannel(session, 'wss://chat.example.org/v1/websocket/')
        >>> await channel.connect()
        >>> if channel.can_accept_requests():
        ...     form = await channel.request(ServiceRequest('GET', '/v3/attachments/form/upload'))
    """
    
    HEARTBEAT = 30.0
    
    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str,
        auth: Optional[aiohttp.BasicAuth] = None
    ):
        self._session = session
        self._url = url
        self._auth = auth
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self._reader: Optional[asyncio.Task] = None
        self._pending: Dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._logger = get_logger('attachkit.transport.websocket')
    
    def can_accept_requests(self) -> bool:
        """Returns True while the socket is open and being read."""
        return (
            self._ws is not None
            and not self._ws.closed
            and self._reader is not None
            and not self._reader.done()
        )
    
    async def connect(self) -> None:
        """Open the socket and start the reader task."""
        if self.can_accept_requests():
            return
        try:
            self._ws = await self._session.ws_connect(
                self._url,
                auth=self._auth,
                heartbeat=self.HEARTBEAT
            )
        except (aiohttp.WSServerHandshakeError, *CONNECTIVITY_ERRORS) as e:
            self._logger.warning(f"Websocket connect failed: {e!r}")
            raise ConnectivityFailure(f"Websocket connect failed: {e}", cause=e) from e
        self._reader = asyncio.create_task(self._read_loop())
        self._logger.info("Websocket connected")
    
    async def close(self) -> None:
        """Close the socket and fail pending requests."""
        if self._ws is not None and not self._ws.closed:
            await self._ws.close()
        if self._reader is not None:
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
            self._reader = None
        self._fail_pending("Websocket closed")
    
    async def request(self, request: ServiceRequest) -> Any:
        """
        Send a request over the socket and wait for its response.
        
        Raises:
            ConnectivityFailure: If the socket is down or drops mid-request
            ServiceRequestError: If the service answered with an error
        """
        if not self.can_accept_requests():
            raise ConnectivityFailure("Websocket is not connected")
        
        request_id = next(self._ids)
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self._ws.send_json({
                'type': 'request',
                'id': request_id,
                'verb': request.verb,
                'path': request.path,
                'headers': request.headers,
                'body': request.body,
            })
            self._logger.debug(f"WS request {request_id}: {request.verb} {request.path}")
            return await future
        except CONNECTIVITY_ERRORS as e:
            raise ConnectivityFailure(f"Websocket send failed: {e}", cause=e) from e
        finally:
            self._pending.pop(request_id, None)
    
    async def _read_loop(self) -> None:
        try:
            async for message in self._ws:
                if message.type == aiohttp.WSMsgType.TEXT:
                    try:
                        frame = message.json()
                    except ValueError:
                        self._logger.warning("Dropping undecodable websocket frame")
                        continue
                    self._dispatch(frame)
                elif message.type == aiohttp.WSMsgType.ERROR:
                    self._logger.warning(f"Websocket error: {self._ws.exception()!r}")
                    break
        finally:
            self._fail_pending("Websocket connection lost")
    
    def _dispatch(self, frame: Dict[str, Any]) -> None:
        if not isinstance(frame, dict) or frame.get('type') != 'response':
            return
        future = self._pending.get(frame.get('id'))
        if future is None or future.done():
            self._logger.debug(f"No pending request for response {frame.get('id')}")
            return
        status = frame.get('status')
        if isinstance(status, int) and 200 <= status < 300:
            future.set_result(frame.get('body'))
        else:
            future.set_exception(
                ServiceRequestError(f"Service returned {status} over websocket", status)
            )
    
    def _fail_pending(self, reason: str) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(ConnectivityFailure(reason))
        self._pending.clear()
