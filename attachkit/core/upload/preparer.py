"""
Payload preparation.

Reads the attachment and encrypts it off the event loop.
"""
import asyncio
from pathlib import Path
from typing import Protocol, Tuple, Union

import aiofiles

from ..crypto import AttachmentCipher
from ..exceptions import EncryptionFailure
from ..logging import get_logger
from .models import EncryptedPayload

Source = Union[str, Path, bytes]


class CipherProtocol(Protocol):
    """Encryption primitive used by the preparer."""
    
    def encrypt(self, plaintext: bytes, pad_plaintext: bool = True) -> Tuple[bytes, bytes, bytes]:
        """Returns (ciphertext, key, digest)."""
        ...


class PayloadPreparer:
    """
    Produces the encrypted payload for an upload.
    
    Responsibilities:
    - Read the source blob
    - Encrypt it with padding in a worker thread
    - Check the cipher produced a key and a digest
    """
    
    def __init__(self, cipher: CipherProtocol = None):
        self._cipher = cipher or AttachmentCipher()
        self._logger = get_logger('attachkit.upload.preparer')
    
    async def prepare(self, source: Source) -> EncryptedPayload:
        """
        Read and encrypt an attachment.
        
        Args:
            source: Path to the attachment, or its contents
            
        Returns:
            Encrypted payload
            
        Raises:
            EncryptionFailure: If the source cannot be read or encryption fails
        """
        plaintext = await self._read(source)
        
        loop = asyncio.get_running_loop()
        try:
            ciphertext, key, digest = await loop.run_in_executor(
                None, self._cipher.encrypt, plaintext, True
            )
        except (ValueError, TypeError) as e:
            raise EncryptionFailure(f"Could not encrypt attachment data: {e}") from e
        
        if not key or not digest:
            raise EncryptionFailure("Could not encrypt attachment data.")
        
        self._logger.debug(f"Encrypted {len(plaintext)} bytes into {len(ciphertext)} bytes")
        return EncryptedPayload(ciphertext=ciphertext, key=key, digest=digest)
    
    async def _read(self, source: Source) -> bytes:
        if isinstance(source, (bytes, bytearray)):
            return bytes(source)
        
        path = Path(source)
        if not path.is_file():
            raise EncryptionFailure(f"Attachment not found: {path}")
        try:
            async with aiofiles.open(path, 'rb') as f:
                return await f.read()
        except OSError as e:
            raise EncryptionFailure(f"Could not read attachment {path}: {e}") from e
