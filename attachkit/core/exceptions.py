"""
Exceptions raised by the attachment upload subsystem.

Every error carries a ``retryable`` flag so callers can decide between
prompting the user (fatal) and scheduling a later retry (transient).
"""
import asyncio
from typing import Optional

import aiohttp


class AttachmentUploadError(Exception):
    """Base exception for all attachment upload errors."""
    
    retryable = False
    
    def __init__(self, message: str, error_code: Optional[int] = None) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message
            error_code: Numeric error code, usually an HTTP status (if available)
        """
        self.error_code = error_code
        super().__init__(message)


class EncryptionFailure(AttachmentUploadError):
    """The blob could not be read or encrypted."""
    pass


class InvalidForm(AttachmentUploadError):
    """The upload form returned by the service is malformed."""
    pass


class InvalidSessionResponse(AttachmentUploadError):
    """The origin did not open a resumable session as expected."""
    pass


class ProtocolViolation(AttachmentUploadError):
    """The origin reported progress that cannot be right."""
    pass


class UploadRejected(AttachmentUploadError):
    """The storage origin answered a transfer with a non-success status."""
    
    def __init__(self, message: str, status: int) -> None:
        self.status = status
        super().__init__(message, error_code=status)


class ServiceRequestError(AttachmentUploadError):
    """The service answered a form request with an error status."""
    
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        self.status = status
        super().__init__(message, error_code=status)


class ConnectivityFailure(AttachmentUploadError):
    """
    Transport level failure (timeout, reset, DNS, no route).
    
    Distinct from a well formed error response from the origin.
    """
    
    retryable = True
    
    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message
            cause: Underlying transport exception (if available)
        """
        self.cause = cause
        super().__init__(message)


class ExhaustedRetries(ConnectivityFailure):
    """A bounded retry loop gave up after repeated connectivity failures."""
    
    def __init__(self, message: str, last_error: ConnectivityFailure, attempts: int) -> None:
        """
        Initialize the exception.
        
        Args:
            message: Error message
            last_error: The connectivity failure of the final attempt
            attempts: Number of attempts made
        """
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(message, cause=last_error)


class UploadCancelled(AttachmentUploadError):
    """The caller cancelled the upload."""
    pass


CONNECTIVITY_ERRORS = (
    aiohttp.ClientConnectionError,
    aiohttp.ClientPayloadError,
    asyncio.TimeoutError,
    ConnectionError,
)


def is_connectivity_failure(error: BaseException) -> bool:
    """Returns True if the error is a transport level failure."""
    if isinstance(error, ConnectivityFailure):
        return True
    return isinstance(error, CONNECTIVITY_ERRORS)
