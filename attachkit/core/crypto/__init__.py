"""Cryptography used for attachments."""
from .attachment import AttachmentCipher, padded_size, KEY_SIZE

__all__ = [
    'AttachmentCipher',
    'padded_size',
    'KEY_SIZE',
]
