"""
High-level attachment upload client.

Usage:
    >>> config = ServiceConfig(service_url='https://chat.example.org/',
    ...                        username='+15551234567.1', password='secret')
    >>> async with AttachmentClient(config) as client:
    ...     result = await client.upload('photo.jpg')
"""
import logging
from pathlib import Path
from typing import Optional, Union

import aiohttp

from .core.config import ServiceConfig
from .core.exceptions import ConnectivityFailure
from .core.logging import get_logger
from .core.transport import AiohttpCdnTransport, ProgressCallback, RestChannel, WebSocketChannel
from .core.upload import (
    AttachmentUploader,
    CancellationToken,
    DualChannelRequester,
    UploadV2Result,
    UploadV3Result,
)


class AttachmentClient:
    """
    Owns the HTTP session and the service channels shared by all uploads.
    
    The websocket is optional: when ``websocket_url`` is configured the
    client tries to connect on entry, and uploads fall back to REST
    whenever the socket is unusable.
    """
    
    def __init__(self, config: Optional[ServiceConfig] = None, use_websocket: bool = True):
        """
        Initialize client.
        
        Args:
            config: Client configuration (uses defaults if not provided)
            use_websocket: Connect the websocket channel if configured
        """
        self._config = config or ServiceConfig.default()
        self._use_websocket = use_websocket
        self._session: Optional[aiohttp.ClientSession] = None
        self._socket: Optional[WebSocketChannel] = None
        self._uploader: Optional[AttachmentUploader] = None
        
        self._logger = get_logger('attachkit.client')
        root_logger = logging.getLogger()
        if not root_logger.handlers:
            self._logger.setLevel(self._config.log_level)
    
    @property
    def config(self) -> ServiceConfig:
        return self._config
    
    @property
    def uploader(self) -> AttachmentUploader:
        if self._uploader is None:
            raise RuntimeError("Client is not open, use 'async with AttachmentClient(...)'")
        return self._uploader
    
    async def __aenter__(self) -> 'AttachmentClient':
        await self.open()
        return self
    
    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
    
    async def open(self) -> None:
        """Create the session and wire up channels and uploader."""
        if self._session is not None:
            return
        
        config = self._config
        connector = aiohttp.TCPConnector(**config.get_connector_kwargs())
        self._session = aiohttp.ClientSession(connector=connector, **config.get_session_kwargs())
        
        auth = None
        if config.username and config.password:
            auth = aiohttp.BasicAuth(config.username, config.password)
        proxy = config.proxy
        
        rest = RestChannel(self._session, config.service_url, auth=auth, proxy=proxy)
        
        if self._use_websocket and config.websocket_url:
            self._socket = WebSocketChannel(self._session, config.websocket_url, auth=auth)
            try:
                await self._socket.connect()
            except ConnectivityFailure as e:
                self._logger.warning(f"Websocket unavailable, using REST only: {e}")
        
        requester = DualChannelRequester(rest, self._socket)
        transport = AiohttpCdnTransport(self._session, chunk_size=config.chunk_size, proxy=proxy)
        self._uploader = AttachmentUploader(requester, transport, config=config)
    
    async def close(self) -> None:
        """Close the websocket and the HTTP session."""
        if self._socket is not None:
            await self._socket.close()
            self._socket = None
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
        self._uploader = None
    
    async def upload(
        self,
        source: Union[str, Path, bytes],
        progress: Optional[ProgressCallback] = None,
        token: Optional[CancellationToken] = None,
        use_v3: Optional[bool] = None
    ) -> Union[UploadV2Result, UploadV3Result]:
        """
        Encrypt and upload an attachment.
        
        Args:
            source: Path to the attachment, or its contents
            progress: Optional fractional progress callback
            token: Optional cancellation token
            use_v3: Override the configured protocol generation
            
        Returns:
            UploadV3Result or UploadV2Result
        """
        use_v3 = self._config.use_v3 if use_v3 is None else use_v3
        if use_v3:
            return await self.uploader.upload_v3(source, progress, token)
        return await self.uploader.upload_v2(source, progress, token)
