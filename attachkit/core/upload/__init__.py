"""
Upload module for attachments.

Encrypts an attachment, fetches an upload form over the websocket or REST,
and sends the payload to storage directly (v2) or through a resumable
session (v3).
"""
from .coordinator import AttachmentUploader
from .direct import DirectUploader
from .forms import FormV2, FormV3, parse_form_v2, parse_form_v3
from .models import (
    CancellationToken,
    EncryptedPayload,
    UploadSession,
    UploadState,
    UploadV2Result,
    UploadV3Result,
)
from .preparer import PayloadPreparer
from .requester import DualChannelRequester
from .resumable import ResumableUploader, parse_range_header

__all__ = [
    # Main classes
    'AttachmentUploader',
    'DirectUploader',
    'ResumableUploader',
    'DualChannelRequester',
    'PayloadPreparer',
    
    # Forms
    'FormV2',
    'FormV3',
    'parse_form_v2',
    'parse_form_v3',
    'parse_range_header',
    
    # Models
    'CancellationToken',
    'EncryptedPayload',
    'UploadSession',
    'UploadState',
    'UploadV2Result',
    'UploadV3Result',
]
