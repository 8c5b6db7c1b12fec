"""
Storage origin transport.

Sends POST/PUT requests with streamed bodies so progress can be reported
as bytes leave the client.
"""
import time
from typing import AsyncIterator, Dict, Optional

import aiohttp

from ..exceptions import CONNECTIVITY_ERRORS, ConnectivityFailure
from ..logging import get_logger
from .models import HttpResponse
from .protocols import ProgressCallback

DEFAULT_CHUNK_SIZE = 64 * 1024


async def stream_body(
    data: bytes,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress: Optional[ProgressCallback] = None
) -> AsyncIterator[bytes]:
    """
    Yield data in chunks, reporting the fraction sent after each one.
    
    The generator is resumed only once the previous chunk has been handed
    to the connection, so the fraction tracks bytes actually written.
    """
    total = len(data)
    view = memoryview(data)
    sent = 0
    if progress:
        progress(0.0)
    while sent < total:
        chunk = bytes(view[sent:sent + chunk_size])
        yield chunk
        sent += len(chunk)
        if progress:
            progress(sent / total)


def session_start_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """
    Headers for a bodiless session start.
    
    The declared upload size moves to X-Upload-Content-Length and the
    request itself carries Content-Length: 0, as no body follows.
    """
    headers = dict(headers)
    declared = headers.get('Content-Length')
    if declared not in (None, '0'):
        headers['X-Upload-Content-Length'] = declared
        headers['Content-Length'] = '0'
    return headers


class AiohttpCdnTransport:
    """
    CdnTransport implementation over aiohttp.
    
    Redirects are never followed: a 308 from a resumable session means
    "Resume Incomplete", not "moved".
    """
    
    def __init__(
        self,
        session: aiohttp.ClientSession,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        proxy: Optional[str] = None
    ):
        """
        Initialize transport.
        
        Args:
            session: Shared aiohttp session
            chunk_size: Body chunk size for progress reporting
            proxy: Optional proxy URL
        """
        self._session = session
        self._chunk_size = chunk_size
        self._proxy = proxy
        self._logger = get_logger('attachkit.transport.cdn')
    
    async def post(
        self,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
        progress: Optional[ProgressCallback] = None
    ) -> HttpResponse:
        return await self._send('POST', url, headers, body, progress)
    
    async def put(
        self,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
        progress: Optional[ProgressCallback] = None
    ) -> HttpResponse:
        return await self._send('PUT', url, headers, body, progress)
    
    async def open_session(self, url: str, headers: Dict[str, str]) -> HttpResponse:
        return await self._send('POST', url, session_start_headers(headers), None, None)
    
    async def _send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes],
        progress: Optional[ProgressCallback]
    ) -> HttpResponse:
        data = stream_body(body, self._chunk_size, progress) if body else None
        size_kb = len(body) / 1024 if body else 0
        
        start = time.time()
        self._logger.debug(f"{method} {url} ({size_kb:.1f} KB)")
        try:
            async with self._session.request(
                method,
                url,
                data=data,
                headers=headers,
                proxy=self._proxy,
                allow_redirects=False
            ) as response:
                content = await response.read()
                elapsed = time.time() - start
                self._logger.debug(f"{method} {url} -> {response.status} in {elapsed:.2f}s")
                return HttpResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    body=content
                )
        except CONNECTIVITY_ERRORS as e:
            elapsed = time.time() - start
            self._logger.warning(f"{method} {url} failed after {elapsed:.2f}s: {e!r}")
            raise ConnectivityFailure(f"{method} {url} failed: {e}", cause=e) from e
