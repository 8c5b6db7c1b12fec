"""
Attachment encryption.

AES-256-CBC with an HMAC-SHA256 tag, plus a SHA-256 digest over the whole
encrypted blob so the recipient can verify what it downloaded.

Layout of an encrypted attachment::

    iv (16) || AES-CBC(pkcs7(padded plaintext)) || HMAC-SHA256(iv || ct) (32)

The 64-byte attachment key is the AES key (32) followed by the MAC key (32).
"""
import hmac as _hmac
import math
from typing import Optional, Tuple

from Crypto.Cipher import AES
from Crypto.Hash import HMAC, SHA256
from Crypto.Random import get_random_bytes
from Crypto.Util.Padding import pad, unpad

AES_KEY_SIZE = 32
MAC_KEY_SIZE = 32
KEY_SIZE = AES_KEY_SIZE + MAC_KEY_SIZE
IV_SIZE = 16
MAC_SIZE = 32

MIN_PADDED_SIZE = 541
PADDING_GROWTH = 1.05


def padded_size(unpadded_size: int) -> int:
    """
    Size an attachment is padded to before encryption.
    
    Sizes are bucketed on a 5% geometric scale so ciphertext length leaks
    little about the plaintext.
    """
    if unpadded_size <= 1:
        return MIN_PADDED_SIZE
    exponent = math.ceil(math.log(unpadded_size) / math.log(PADDING_GROWTH))
    return max(MIN_PADDED_SIZE, math.floor(math.pow(PADDING_GROWTH, exponent)))


class AttachmentCipher:
    """Encrypts and decrypts attachment blobs."""
    
    def encrypt(self, plaintext: bytes, pad_plaintext: bool = True) -> Tuple[bytes, bytes, bytes]:
        """
        Encrypt an attachment with a fresh random key.
        
        Args:
            plaintext: Attachment contents
            pad_plaintext: Zero-pad to the bucketed size first
            
        Returns:
            Tuple of (encrypted blob, 64-byte key, 32-byte digest)
        """
        key = get_random_bytes(KEY_SIZE)
        iv = get_random_bytes(IV_SIZE)
        
        if pad_plaintext:
            target = padded_size(len(plaintext))
            plaintext = plaintext + b'\x00' * (target - len(plaintext))
        
        cipher = AES.new(key[:AES_KEY_SIZE], AES.MODE_CBC, iv=iv)
        body = iv + cipher.encrypt(pad(plaintext, AES.block_size))
        
        mac = HMAC.new(key[AES_KEY_SIZE:], digestmod=SHA256)
        mac.update(body)
        encrypted = body + mac.digest()
        
        digest = SHA256.new(encrypted).digest()
        return encrypted, key, digest
    
    def decrypt(
        self,
        encrypted: bytes,
        key: bytes,
        digest: bytes,
        unpadded_size: Optional[int] = None
    ) -> bytes:
        """
        Verify and decrypt an attachment.
        
        Args:
            encrypted: Encrypted blob as produced by encrypt()
            key: 64-byte attachment key
            digest: Expected SHA-256 of the encrypted blob
            unpadded_size: Original plaintext size, strips zero padding
            
        Raises:
            ValueError: If the blob is truncated or fails verification
        """
        if len(key) != KEY_SIZE:
            raise ValueError(f"Key must be {KEY_SIZE} bytes")
        if len(encrypted) < IV_SIZE + AES.block_size + MAC_SIZE:
            raise ValueError("Encrypted attachment is too short")
        
        if not _hmac.compare_digest(SHA256.new(encrypted).digest(), digest):
            raise ValueError("Attachment digest mismatch")
        
        body, tag = encrypted[:-MAC_SIZE], encrypted[-MAC_SIZE:]
        mac = HMAC.new(key[AES_KEY_SIZE:], digestmod=SHA256)
        mac.update(body)
        mac.verify(tag)
        
        iv, ciphertext = body[:IV_SIZE], body[IV_SIZE:]
        cipher = AES.new(key[:AES_KEY_SIZE], AES.MODE_CBC, iv=iv)
        plaintext = unpad(cipher.decrypt(ciphertext), AES.block_size)
        
        if unpadded_size is not None:
            if unpadded_size > len(plaintext):
                raise ValueError("Unpadded size exceeds decrypted length")
            plaintext = plaintext[:unpadded_size]
        return plaintext
