"""
Upload coordinator.

Orchestrates an attachment upload using injected dependencies:
fetch form -> parse -> encrypt -> transfer.
"""
from typing import Optional, Union

from ..config import ServiceConfig
from ..exceptions import InvalidForm
from ..logging import get_logger
from ..retry import FixedDelayStrategy
from ..transport import CdnTransport, ProgressCallback, ServiceRequest
from .direct import DirectUploader
from .forms import parse_form_v2, parse_form_v3
from .models import (
    CancellationToken,
    UploadV2Result,
    UploadV3Result,
    millisecond_timestamp,
)
from .preparer import PayloadPreparer, Source
from .requester import DualChannelRequester
from .resumable import ResumableUploader

logger = get_logger('attachkit.upload.coordinator')

FORM_PATH_V2 = '/v2/attachments/form/upload'
FORM_PATH_V3 = '/v3/attachments/form/upload'


def attachment_form_request_v2() -> ServiceRequest:
    return ServiceRequest('GET', FORM_PATH_V2)


def attachment_form_request_v3() -> ServiceRequest:
    return ServiceRequest('GET', FORM_PATH_V3)


class AttachmentUploader:
    """
    Coordinates attachment uploads.
    
    Uses dependency injection for all components, making it:
    - Testable (fake transports)
    - Safe to share: no per-upload state is kept on the instance
    
    Each call is independent; the encrypted payload and the upload session
    live only for the duration of that call. The attachment key and digest
    are only surfaced in the result, after the upload succeeded.
    
    Example:
        >>> uploader = AttachmentUploader(requester, cdn_transport)
        >>> result = await uploader.upload_v3('photo.jpg')
        >>> result.cdn_key, result.cdn_number
    """
    
    def __init__(
        self,
        requester: DualChannelRequester,
        cdn_transport: CdnTransport,
        preparer: Optional[PayloadPreparer] = None,
        config: Optional[ServiceConfig] = None
    ):
        """
        Initialize upload coordinator.
        
        Args:
            requester: Dual-channel requester for form requests
            cdn_transport: Storage origin transport
            preparer: Payload preparer (AttachmentCipher based by default)
            config: Client configuration
        """
        self._requester = requester
        self._transport = cdn_transport
        self._preparer = preparer or PayloadPreparer()
        self._config = config or ServiceConfig.default()
    
    async def upload(
        self,
        source: Source,
        progress: Optional[ProgressCallback] = None,
        token: Optional[CancellationToken] = None
    ) -> Union[UploadV2Result, UploadV3Result]:
        """Upload with the protocol generation selected in the config."""
        if self._config.use_v3:
            return await self.upload_v3(source, progress, token)
        return await self.upload_v2(source, progress, token)
    
    async def upload_v2(
        self,
        source: Source,
        progress: Optional[ProgressCallback] = None,
        token: Optional[CancellationToken] = None
    ) -> UploadV2Result:
        """
        Upload an attachment with a direct multipart POST.
        
        Args:
            source: Path to the attachment, or its contents
            progress: Optional fractional progress callback
            token: Optional cancellation token
            
        Returns:
            Upload result with object key and server id
            
        Raises:
            InvalidForm: If the form is malformed or lacks an attachment id
            EncryptionFailure: If the payload could not be prepared
            ConnectivityFailure: Transport failure, retryable by the caller
        """
        logger.info("Requesting v2 upload form")
        raw = await self._requester.fetch(attachment_form_request_v2, token=token)
        form = parse_form_v2(raw)
        if form.attachment_id is None:
            raise InvalidForm("Missing attachmentId")
        
        payload = await self._preparer.prepare(source)
        
        uploader = DirectUploader(self._transport, self._config.cdn_url(0))
        object_key = await uploader.upload(payload, form, progress, token)
        
        result = UploadV2Result(
            object_key=object_key,
            server_id=form.attachment_id,
            encryption_key=payload.key,
            digest=payload.digest,
            upload_timestamp=millisecond_timestamp(),
        )
        logger.info(f"Uploaded attachment {result.server_id} ({len(payload)} bytes)")
        return result
    
    async def upload_v3(
        self,
        source: Source,
        progress: Optional[ProgressCallback] = None,
        token: Optional[CancellationToken] = None
    ) -> UploadV3Result:
        """
        Upload an attachment through a resumable session.
        
        Args:
            source: Path to the attachment, or its contents
            progress: Optional fractional progress callback
            token: Optional cancellation token
            
        Returns:
            Upload result with CDN key and number
            
        Raises:
            InvalidForm: If the form is malformed
            EncryptionFailure: If the payload could not be prepared
            InvalidSessionResponse: If the session could not be opened
            ProtocolViolation: If the origin reports impossible progress
            ExhaustedRetries: If connectivity failures exhausted the retries
        """
        logger.info("Requesting v3 upload form")
        raw = await self._requester.fetch(attachment_form_request_v3, token=token)
        form = parse_form_v3(raw)
        
        payload = await self._preparer.prepare(source)
        
        retry = self._config.retry
        uploader = ResumableUploader(
            self._transport,
            session_open_attempts=retry.session_open_attempts,
            upload_attempts=retry.upload_attempts,
            retry_strategy=FixedDelayStrategy(retry.retry_delay),
        )
        await uploader.upload_with_form(form, payload, progress, token)
        
        result = UploadV3Result(
            cdn_key=form.cdn_key,
            cdn_number=form.cdn_number,
            encryption_key=payload.key,
            digest=payload.digest,
            upload_timestamp=millisecond_timestamp(),
        )
        logger.info(f"Uploaded attachment {result.cdn_key} to CDN {result.cdn_number} ({len(payload)} bytes)")
        return result
