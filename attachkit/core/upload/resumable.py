"""
Resumable (v3) upload.

Opens a resumable session on the storage origin, then PUTs the payload.
After a connectivity failure the session is probed for how many bytes
the origin already persisted and only the remainder is sent.

    SESSION_OPENING -> UPLOADING -> SUCCEEDED
                           |  ^
                           v  |
                         PROBING        (any fatal error -> FAILED)

Wire format of a resumed PUT, e.g. after 2359296 of 7351375 bytes::

    Content-Range: bytes 2359296-7351374/7351375
    Content-Length: 4992079
"""
import asyncio
import re
from typing import Optional
from urllib.parse import urljoin, urlsplit

from ..config import MAX_SESSION_OPEN_ATTEMPTS, MAX_UPLOAD_ATTEMPTS, UPLOAD_RETRY_DELAY
from ..exceptions import (
    AttachmentUploadError,
    ConnectivityFailure,
    ExhaustedRetries,
    InvalidSessionResponse,
    ProtocolViolation,
    UploadRejected,
)
from ..logging import get_logger
from ..retry import ConnectivityRetryStrategy, FixedDelayStrategy, RetryStrategy
from ..transport import CdnTransport, HttpResponse, ProgressCallback
from .forms import FormV3
from .models import CancellationToken, EncryptedPayload, UploadSession, UploadState

OCTET_STREAM = 'application/octet-stream'

HTTP_CREATED = 201
HTTP_RESUME_INCOMPLETE = 308

_RANGE_PREFIX = 'bytes=0-'
_DIGITS = re.compile(r'[0-9]+')


def parse_range_header(value: Optional[str]) -> int:
    """
    Bytes received according to a ``Range: bytes=0-N`` header.
    
    N is the index of the last byte received, so N + 1 bytes are stored.
    Anything unexpected yields 0.
    """
    if not value or not value.startswith(_RANGE_PREFIX):
        return 0
    end = value[len(_RANGE_PREFIX):]
    if not _DIGITS.fullmatch(end):
        return 0
    return int(end) + 1


class ResumableUploader:
    """
    Uploads a payload through a resumable session.
    
    Attempt limits are inclusive of the first try: by default a session is
    opened in at most 4 attempts and the payload sent in at most 16.
    """
    
    def __init__(
        self,
        transport: CdnTransport,
        session_open_attempts: int = MAX_SESSION_OPEN_ATTEMPTS,
        upload_attempts: int = MAX_UPLOAD_ATTEMPTS,
        retry_strategy: Optional[RetryStrategy] = None,
        session_open_strategy: Optional[RetryStrategy] = None
    ):
        """
        Initialize resumable uploader.
        
        Args:
            transport: Storage origin transport
            session_open_attempts: Max attempts to open the session
            upload_attempts: Max attempts to transfer the payload
            retry_strategy: Strategy between transfer attempts
                (fixed 3 second delay by default)
            session_open_strategy: Strategy between session open attempts
                (immediate by default)
        """
        self._transport = transport
        self._session_open_attempts = session_open_attempts
        self._upload_attempts = upload_attempts
        self._retry = retry_strategy or FixedDelayStrategy(UPLOAD_RETRY_DELAY)
        self._session_retry = session_open_strategy or ConnectivityRetryStrategy()
        self._state = UploadState.IDLE
        self._logger = get_logger('attachkit.upload.resumable')
    
    @property
    def state(self) -> UploadState:
        return self._state
    
    def _transition(self, state: UploadState) -> None:
        if state != self._state:
            self._logger.debug(f"{self._state.value} -> {state.value}")
        self._state = state
    
    async def open_session(
        self,
        form: FormV3,
        total_length: int,
        token: Optional[CancellationToken] = None
    ) -> UploadSession:
        """
        Open a resumable session for the payload.
        
        Args:
            form: Parsed v3 upload form
            total_length: Size of the encrypted payload
            token: Optional cancellation token
            
        Returns:
            The session to upload to
            
        Raises:
            InvalidSessionResponse: If the origin did not answer 201 + Location
            ExhaustedRetries: If every attempt failed on connectivity
        """
        self._transition(UploadState.SESSION_OPENING)
        headers = dict(form.headers)
        headers['Content-Length'] = str(total_length)
        headers['Content-Type'] = OCTET_STREAM
        
        attempt = 0
        while True:
            attempt += 1
            if attempt > 1:
                self._logger.info(f"Session open attempt {attempt}")
            try:
                if token:
                    token.raise_if_cancelled()
                response = await self._transport.open_session(form.signed_upload_location, headers)
                url = self._parse_session_response(response, form.signed_upload_location)
            except ConnectivityFailure as e:
                if self._session_retry.should_retry(e, attempt, self._session_open_attempts):
                    await self._session_retry.wait_async(attempt)
                    continue
                self._transition(UploadState.FAILED)
                self._logger.warning(f"No more retries opening session: {attempt}")
                raise ExhaustedRetries(
                    f"Could not open upload session after {attempt} attempts: {e}",
                    last_error=e,
                    attempts=attempt
                ) from e
            except AttachmentUploadError:
                self._transition(UploadState.FAILED)
                raise
            
            self._logger.debug(f"Opened upload session for {total_length} bytes")
            return UploadSession(url=url, total_length=total_length)
    
    def _parse_session_response(self, response: HttpResponse, request_url: str) -> str:
        if response.status != HTTP_CREATED:
            raise InvalidSessionResponse(
                f"Invalid statusCode: {response.status}.", error_code=response.status
            )
        location = response.header('Location')
        if not location:
            raise InvalidSessionResponse("Missing location header.")
        url = urljoin(request_url, location.strip())
        parts = urlsplit(url)
        if parts.scheme not in ('http', 'https') or not parts.netloc:
            raise InvalidSessionResponse(f"Invalid location header: {location}")
        return url
    
    async def upload(
        self,
        session: UploadSession,
        payload: EncryptedPayload,
        progress: Optional[ProgressCallback] = None,
        token: Optional[CancellationToken] = None
    ) -> None:
        """
        Transfer the payload, resuming after connectivity failures.
        
        Progress is reported per attempt, from the resume offset onwards.
        
        Args:
            session: Open upload session
            payload: Encrypted payload
            progress: Optional fractional progress callback
            token: Optional cancellation token
            
        Raises:
            ProtocolViolation: If the origin claims more bytes than exist
            UploadRejected: If the origin refused the transfer
            ExhaustedRetries: If every attempt failed on connectivity
        """
        if len(payload) != session.total_length:
            raise ValueError(
                f"Payload size {len(payload)} does not match session size {session.total_length}"
            )
        
        attempt = 0
        try:
            while True:
                attempt += 1
                try:
                    await self._attempt(session, payload, attempt, progress, token)
                    self._transition(UploadState.SUCCEEDED)
                    return
                except ConnectivityFailure as e:
                    if not self._retry.should_retry(e, attempt, self._upload_attempts):
                        self._logger.warning(f"No more retries: {attempt}")
                        raise ExhaustedRetries(
                            f"Upload failed after {attempt} attempts: {e}",
                            last_error=e,
                            attempts=attempt
                        ) from e
                    self._logger.info(f"Trying to resume after attempt {attempt}: {e}")
                    # Origin needs time to persist received bytes before a probe.
                    await self._retry.wait_async(attempt)
        except (AttachmentUploadError, asyncio.CancelledError):
            self._transition(UploadState.FAILED)
            raise
    
    async def _attempt(
        self,
        session: UploadSession,
        payload: EncryptedPayload,
        attempt: int,
        progress: Optional[ProgressCallback],
        token: Optional[CancellationToken]
    ) -> None:
        total = session.total_length
        if attempt == 1:
            already_sent = 0
        else:
            self._logger.info(f"attemptCount: {attempt}")
            self._transition(UploadState.PROBING)
            already_sent = await self.resolve_progress(session.url, total, token)
        
        self._transition(UploadState.UPLOADING)
        if already_sent > total:
            raise ProtocolViolation(
                f"Origin reports {already_sent} bytes received of {total}"
            )
        if already_sent == total:
            self._logger.info("Upload already complete")
            if progress:
                progress(1.0)
            return
        
        await self._put_range(session, payload, already_sent, progress, token)
    
    async def _put_range(
        self,
        session: UploadSession,
        payload: EncryptedPayload,
        start: int,
        progress: Optional[ProgressCallback],
        token: Optional[CancellationToken]
    ) -> None:
        total = session.total_length
        data = payload.ciphertext[start:]
        
        headers = {'Content-Length': str(len(data))}
        if start > 0:
            headers['Content-Range'] = f'bytes {start}-{total - 1}/{total}'
            self._logger.info(f"Resuming after uploading {start} of {total} bytes")
        
        if token:
            token.raise_if_cancelled()
        response = await self._transport.put(session.url, headers, data, progress)
        if not response.ok:
            self._logger.error(f"Upload rejected with status {response.status}")
            raise UploadRejected(f"Upload rejected: {response.status}", response.status)
    
    async def resolve_progress(
        self,
        session_url: str,
        total_length: int,
        token: Optional[CancellationToken] = None
    ) -> int:
        """
        Ask the origin how many bytes of the session it has stored.
        
        Any answer other than a well formed 308 resolves to 0.
        
        Args:
            session_url: Resumable session URL
            total_length: Size of the payload
            token: Optional cancellation token
            
        Returns:
            Number of bytes already received
            
        Raises:
            ConnectivityFailure: If the probe itself could not be sent
        """
        headers = {
            'Content-Length': '0',
            'Content-Range': f'bytes */{total_length}',
        }
        if token:
            token.raise_if_cancelled()
        response = await self._transport.put(session_url, headers)
        
        if response.status != HTTP_RESUME_INCOMPLETE:
            self._logger.warning(f"Invalid status code: {response.status}, restarting upload")
            return 0
        
        range_header = response.header('Range')
        if range_header is None:
            # Bytes may have arrived but not been persisted yet.
            self._logger.warning("Missing Range header, restarting upload")
            return 0
        
        self._logger.info(f"rangeHeader: {range_header}")
        progress = parse_range_header(range_header)
        if progress == 0:
            self._logger.warning(f"Invalid Range header: {range_header}, restarting upload")
        else:
            self._logger.info(f"progress: {progress}")
        return progress
    
    async def upload_with_form(
        self,
        form: FormV3,
        payload: EncryptedPayload,
        progress: Optional[ProgressCallback] = None,
        token: Optional[CancellationToken] = None
    ) -> UploadSession:
        """Open a session for the payload and upload it."""
        session = await self.open_session(form, len(payload), token)
        await self.upload(session, payload, progress, token)
        return session
