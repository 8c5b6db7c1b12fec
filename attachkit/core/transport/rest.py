"""
REST channel to the chat service.

Plain request/response over HTTPS; always available, higher latency than
the websocket.
"""
import json
from typing import Any, Optional
from urllib.parse import urljoin

import aiohttp

from ..exceptions import CONNECTIVITY_ERRORS, ConnectivityFailure, ServiceRequestError
from ..logging import get_logger
from .models import ServiceRequest


class RestChannel:
    """RequestChannel implementation over aiohttp."""
    
    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str,
        auth: Optional[aiohttp.BasicAuth] = None,
        proxy: Optional[str] = None
    ):
        """
        Initialize REST channel.
        
        Args:
            session: Shared aiohttp session
            base_url: Service base URL
            auth: Optional basic auth credentials
            proxy: Optional proxy URL
        """
        self._session = session
        self._base_url = base_url.rstrip('/') + '/'
        self._auth = auth
        self._proxy = proxy
        self._logger = get_logger('attachkit.transport.rest')
    
    async def request(self, request: ServiceRequest) -> Any:
        """
        Perform a service request.
        
        Returns:
            Decoded JSON body, or None for an empty body
            
        Raises:
            ConnectivityFailure: If the request could not be delivered
            ServiceRequestError: On error status or undecodable body
        """
        url = urljoin(self._base_url, request.path.lstrip('/'))
        self._logger.debug(f"REST {request.verb} {url}")
        
        try:
            async with self._session.request(
                request.verb,
                url,
                json=request.body,
                headers=request.headers or None,
                auth=self._auth,
                proxy=self._proxy
            ) as response:
                text = await response.text()
                status = response.status
        except CONNECTIVITY_ERRORS as e:
            self._logger.warning(f"REST {request.verb} {url} failed: {e!r}")
            raise ConnectivityFailure(f"REST request failed: {e}", cause=e) from e
        
        if not 200 <= status < 300:
            self._logger.error(f"REST {request.verb} {url} returned {status}")
            raise ServiceRequestError(f"Service returned {status} for {request.path}", status)
        
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError as e:
            raise ServiceRequestError(f"Invalid JSON response for {request.path}: {e}", status) from e
