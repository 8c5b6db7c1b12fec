"""Tests for attachment encryption."""
import pytest
from Crypto.Hash import SHA256
from Crypto.Random import get_random_bytes

from attachkit.core.crypto import AttachmentCipher, KEY_SIZE, padded_size


class TestPaddedSize:
    """Test suite for padding buckets."""
    
    @pytest.mark.parametrize('size', [0, 1, 100, 541])
    def test_minimum(self, size):
        """Test small attachments pad to the minimum bucket."""
        assert padded_size(size) == 541
    
    @pytest.mark.parametrize('size', [542, 1000, 4096, 1_000_000, 7_351_375])
    def test_never_smaller(self, size):
        """Test padded size is never below the original size."""
        assert padded_size(size) >= size
    
    def test_bucket_growth_bounded(self):
        """Test padding adds at most about 5%."""
        size = 1_000_000
        
        assert padded_size(size) <= size * 1.05 + 1
    
    def test_monotonic(self):
        """Test bigger inputs never get smaller buckets."""
        sizes = [padded_size(n) for n in range(500, 5000, 37)]
        
        assert sizes == sorted(sizes)


class TestAttachmentCipher:
    """Test suite for AttachmentCipher."""
    
    @pytest.fixture
    def cipher(self):
        return AttachmentCipher()
    
    def test_encrypt_outputs(self, cipher):
        """Test key size, digest and layout of the ciphertext."""
        plaintext = b"attachment contents"
        
        encrypted, key, digest = cipher.encrypt(plaintext)
        
        assert len(key) == KEY_SIZE
        assert digest == SHA256.new(encrypted).digest()
        # iv + padded ciphertext + mac
        assert len(encrypted) == 16 + (541 // 16 + 1) * 16 + 32
        assert plaintext not in encrypted
    
    def test_roundtrip_with_padding(self, cipher):
        """Test decrypting strips padding given the original size."""
        plaintext = get_random_bytes(3000)
        
        encrypted, key, digest = cipher.encrypt(plaintext, pad_plaintext=True)
        decrypted = cipher.decrypt(encrypted, key, digest, unpadded_size=len(plaintext))
        
        assert decrypted == plaintext
    
    def test_roundtrip_without_padding(self, cipher):
        """Test unpadded mode decrypts to the exact plaintext."""
        plaintext = b"exact"
        
        encrypted, key, digest = cipher.encrypt(plaintext, pad_plaintext=False)
        
        assert cipher.decrypt(encrypted, key, digest) == plaintext
    
    def test_fresh_key_per_call(self, cipher):
        """Test every encryption uses a new key."""
        _, key1, _ = cipher.encrypt(b"same")
        _, key2, _ = cipher.encrypt(b"same")
        
        assert key1 != key2
    
    def test_tampered_ciphertext_rejected(self, cipher):
        """Test MAC verification catches modification."""
        encrypted, key, _ = cipher.encrypt(b"secret")
        tampered = bytearray(encrypted)
        tampered[20] ^= 0xFF
        tampered = bytes(tampered)
        
        with pytest.raises(ValueError):
            cipher.decrypt(tampered, key, SHA256.new(tampered).digest())
    
    def test_wrong_digest_rejected(self, cipher):
        """Test digest mismatch is detected."""
        encrypted, key, _ = cipher.encrypt(b"secret")
        
        with pytest.raises(ValueError, match="digest"):
            cipher.decrypt(encrypted, key, b"\x00" * 32)
