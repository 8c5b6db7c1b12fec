"""
Direct (v2) upload.

One multipart POST of the whole encrypted payload. No retry here: a
connectivity failure is reported to the caller as retryable.
"""
from typing import List, Optional

import aiohttp

from ..exceptions import ConnectivityFailure, UploadRejected
from ..logging import get_logger
from ..transport import CdnTransport, ProgressCallback
from .forms import FormV2
from .models import CancellationToken, EncryptedPayload

OCTET_STREAM = 'application/octet-stream'
ATTACHMENTS_PATH = 'attachments/'


class _BufferWriter:
    """Collects what a payload writes."""
    
    def __init__(self):
        self.chunks: List[bytes] = []
    
    async def write(self, chunk: bytes) -> None:
        self.chunks.append(bytes(chunk))


def _form_part(name: str, part: aiohttp.Payload) -> aiohttp.Payload:
    part.set_content_disposition('form-data', name=name)
    return part


async def multipart_bytes(writer: aiohttp.MultipartWriter) -> bytes:
    """Serialize a multipart writer, closing boundary included."""
    buffer = _BufferWriter()
    await writer.write(buffer)
    return b''.join(buffer.chunks)


class DirectUploader:
    """
    Uploads a payload with a single multipart POST.
    
    Responsibilities:
    - Build the multipart body in canonical field order
    - Send it and report progress
    - Return the object key on success
    """
    
    def __init__(
        self,
        transport: CdnTransport,
        base_url: str,
        path: str = ATTACHMENTS_PATH,
        boundary: Optional[str] = None
    ):
        """
        Initialize direct uploader.
        
        Args:
            transport: Storage origin transport
            base_url: Base URL of the v2 origin (CDN 0)
            path: Upload path on the origin
            boundary: Fixed multipart boundary (random if omitted)
        """
        self._transport = transport
        self._url = base_url.rstrip('/') + '/' + path.lstrip('/')
        self._boundary = boundary
        self._logger = get_logger('attachkit.upload.direct')
    
    @property
    def url(self) -> str:
        return self._url
    
    def build_body(self, payload: EncryptedPayload, form: FormV2) -> aiohttp.MultipartWriter:
        """Form fields in form order, then Content-Type, then the file."""
        body = aiohttp.MultipartWriter('form-data', boundary=self._boundary)
        for name, value in form.multipart_fields():
            body.append_payload(_form_part(name, aiohttp.StringPayload(value)))
        body.append_payload(_form_part('Content-Type', aiohttp.StringPayload(OCTET_STREAM)))
        body.append_payload(_form_part(
            'file', aiohttp.BytesPayload(payload.ciphertext, content_type=OCTET_STREAM)
        ))
        return body
    
    async def upload(
        self,
        payload: EncryptedPayload,
        form: FormV2,
        progress: Optional[ProgressCallback] = None,
        token: Optional[CancellationToken] = None
    ) -> str:
        """
        Upload the payload.
        
        Args:
            payload: Encrypted payload
            form: Parsed v2 upload form
            progress: Optional fractional progress callback
            token: Optional cancellation token
            
        Returns:
            The object key from the form
            
        Raises:
            ConnectivityFailure: Transport failure, retryable by the caller
            UploadRejected: The origin refused the upload
        """
        body = self.build_body(payload, form)
        data = await multipart_bytes(body)
        headers = {
            'Content-Type': body.content_type,
            'Content-Length': str(len(data)),
        }
        
        if token:
            token.raise_if_cancelled()
        
        self._logger.info(f"Uploading {len(payload)} bytes to {self._url}")
        try:
            response = await self._transport.post(self._url, headers, data, progress)
        except ConnectivityFailure as e:
            self._logger.warning(f"Upload failed: {e}")
            raise
        
        if not response.ok:
            self._logger.error(f"Upload rejected with status {response.status}")
            raise UploadRejected(f"Upload rejected: {response.status}", response.status)
        
        self._logger.debug("Upload succeeded")
        return form.key
