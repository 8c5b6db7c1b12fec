"""
attachkit - Async client for encrypted, resumable attachment uploads.

Usage:
    >>> from attachkit import AttachmentClient, ServiceConfig
    >>> 
    >>> async with AttachmentClient(ServiceConfig.from_env()) as client:
    ...     result = await client.upload("photo.jpg")
    ...     print(result.cdn_key, result.cdn_number)
"""
import logging
from .client import AttachmentClient

# Configuration
from .core.config import (
    ServiceConfig,
    TimeoutConfig,
    ResumableRetryConfig,
)

# Errors
from .core.exceptions import (
    AttachmentUploadError,
    EncryptionFailure,
    InvalidForm,
    InvalidSessionResponse,
    ProtocolViolation,
    UploadRejected,
    ServiceRequestError,
    ConnectivityFailure,
    ExhaustedRetries,
    UploadCancelled,
)

# Uploads
from .core.upload import (
    AttachmentUploader,
    CancellationToken,
    UploadV2Result,
    UploadV3Result,
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for attachkit modules.
    
    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        'attachkit',
        'attachkit.client',
        'attachkit.upload',
        'attachkit.upload.coordinator',
        'attachkit.upload.forms',
        'attachkit.upload.preparer',
        'attachkit.upload.requester',
        'attachkit.upload.direct',
        'attachkit.upload.resumable',
        'attachkit.transport',
        'attachkit.transport.cdn',
        'attachkit.transport.rest',
        'attachkit.transport.websocket',
    ]
    
    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'AttachmentClient',
    'AttachmentUploader',
    'CancellationToken',
    'UploadV2Result',
    'UploadV3Result',
    'ServiceConfig',
    'TimeoutConfig',
    'ResumableRetryConfig',
    'AttachmentUploadError',
    'EncryptionFailure',
    'InvalidForm',
    'InvalidSessionResponse',
    'ProtocolViolation',
    'UploadRejected',
    'ServiceRequestError',
    'ConnectivityFailure',
    'ExhaustedRetries',
    'UploadCancelled',
    'setup_logging',
]
