"""
Data models for upload module.

Uses dataclasses for immutable, type-safe data structures.
"""
import time
from dataclasses import dataclass
from enum import Enum

from ..exceptions import UploadCancelled


def millisecond_timestamp() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class EncryptedPayload:
    """
    An encrypted attachment ready for upload.
    
    Attributes:
        ciphertext: Encrypted blob, what is sent over the wire
        key: Attachment key the recipient needs to decrypt
        digest: SHA-256 of the ciphertext
    """
    ciphertext: bytes
    key: bytes
    digest: bytes
    
    def __len__(self) -> int:
        return len(self.ciphertext)
    
    def __repr__(self) -> str:
        return f"EncryptedPayload(size={len(self.ciphertext)})"


@dataclass(frozen=True)
class UploadSession:
    """A resumable upload session opened on a storage origin."""
    url: str
    total_length: int


class UploadState(Enum):
    """States of a resumable upload."""
    IDLE = 'idle'
    SESSION_OPENING = 'session_opening'
    UPLOADING = 'uploading'
    PROBING = 'probing'
    SUCCEEDED = 'succeeded'
    FAILED = 'failed'


@dataclass(frozen=True)
class UploadV2Result:
    """
    Result of a direct (v2) upload.
    
    Attributes:
        object_key: Key of the stored object
        server_id: Numeric attachment id assigned by the service
        encryption_key: Attachment key
        digest: Ciphertext digest
        upload_timestamp: Completion time in milliseconds
    """
    object_key: str
    server_id: int
    encryption_key: bytes
    digest: bytes
    upload_timestamp: int


@dataclass(frozen=True)
class UploadV3Result:
    """
    Result of a resumable (v3) upload.
    
    Attributes:
        cdn_key: Storage node key of the object
        cdn_number: CDN generation that stores it
        encryption_key: Attachment key
        digest: Ciphertext digest
        upload_timestamp: Completion time in milliseconds
    """
    cdn_key: str
    cdn_number: int
    encryption_key: bytes
    digest: bytes
    upload_timestamp: int


class CancellationToken:
    """
    Explicit cancellation for an upload.
    
    Checked before every network call. Cancelling the task running the
    upload also works and additionally interrupts in-flight requests.
    """
    
    def __init__(self):
        self._cancelled = False
    
    @property
    def cancelled(self) -> bool:
        return self._cancelled
    
    def cancel(self) -> None:
        self._cancelled = True
    
    def raise_if_cancelled(self) -> None:
        """Raise UploadCancelled if cancel() was called."""
        if self._cancelled:
            raise UploadCancelled("Upload cancelled")
