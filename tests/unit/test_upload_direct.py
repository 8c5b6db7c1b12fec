"""Tests for the direct (v2) uploader."""
import re

import pytest

from attachkit.core.exceptions import ConnectivityFailure, UploadRejected
from attachkit.core.transport import HttpResponse
from attachkit.core.upload import DirectUploader, EncryptedPayload, FormV2
from attachkit.core.upload.direct import multipart_bytes

FORM = FormV2(
    acl='private',
    key='attachments/42',
    policy='cG9saWN5',
    algorithm='AWS4-HMAC-SHA256',
    credential='AKIA/20200101/us-east-1/s3/aws4_request',
    date='20200101T000000Z',
    signature='c2lnbmF0dXJl',
    attachment_id=42,
)

PAYLOAD = EncryptedPayload(ciphertext=b'\x00\x01\xfeDATA', key=b'k' * 64, digest=b'd' * 32)

GOLDEN_BODY = (
    b'--BOUNDARY\r\n'
    b'Content-Type: text/plain; charset=utf-8\r\n'
    b'Content-Disposition: form-data; name="key"\r\n'
    b'\r\n'
    b'attachments/42\r\n'
    b'--BOUNDARY\r\n'
    b'Content-Type: text/plain; charset=utf-8\r\n'
    b'Content-Disposition: form-data; name="acl"\r\n'
    b'\r\n'
    b'private\r\n'
    b'--BOUNDARY\r\n'
    b'Content-Type: text/plain; charset=utf-8\r\n'
    b'Content-Disposition: form-data; name="x-amz-algorithm"\r\n'
    b'\r\n'
    b'AWS4-HMAC-SHA256\r\n'
    b'--BOUNDARY\r\n'
    b'Content-Type: text/plain; charset=utf-8\r\n'
    b'Content-Disposition: form-data; name="x-amz-credential"\r\n'
    b'\r\n'
    b'AKIA/20200101/us-east-1/s3/aws4_request\r\n'
    b'--BOUNDARY\r\n'
    b'Content-Type: text/plain; charset=utf-8\r\n'
    b'Content-Disposition: form-data; name="x-amz-date"\r\n'
    b'\r\n'
    b'20200101T000000Z\r\n'
    b'--BOUNDARY\r\n'
    b'Content-Type: text/plain; charset=utf-8\r\n'
    b'Content-Disposition: form-data; name="policy"\r\n'
    b'\r\n'
    b'cG9saWN5\r\n'
    b'--BOUNDARY\r\n'
    b'Content-Type: text/plain; charset=utf-8\r\n'
    b'Content-Disposition: form-data; name="x-amz-signature"\r\n'
    b'\r\n'
    b'c2lnbmF0dXJl\r\n'
    b'--BOUNDARY\r\n'
    b'Content-Type: text/plain; charset=utf-8\r\n'
    b'Content-Disposition: form-data; name="Content-Type"\r\n'
    b'\r\n'
    b'application/octet-stream\r\n'
    b'--BOUNDARY\r\n'
    b'Content-Type: application/octet-stream\r\n'
    b'Content-Disposition: form-data; name="file"\r\n'
    b'\r\n'
    b'\x00\x01\xfeDATA\r\n'
    b'--BOUNDARY--\r\n'
)


class TestDirectUploader:
    """Test suite for DirectUploader."""
    
    @pytest.fixture
    def uploader(self, cdn_transport):
        """Create uploader with a fixed boundary."""
        return DirectUploader(cdn_transport, 'https://cdn.example.org/', boundary='BOUNDARY')
    
    def test_url(self, uploader):
        """Test uploads go to the attachments path."""
        assert uploader.url == 'https://cdn.example.org/attachments/'
    
    def test_custom_path(self, cdn_transport):
        """Test other v2 uploads can target their own path."""
        uploader = DirectUploader(cdn_transport, 'https://cdn.example.org', path='/avatars/')
        
        assert uploader.url == 'https://cdn.example.org/avatars/'
    
    def test_random_boundary(self, cdn_transport):
        """Test boundaries are random when not given."""
        uploader = DirectUploader(cdn_transport, 'https://cdn.example.org/')
        
        first = uploader.build_body(PAYLOAD, FORM)
        second = uploader.build_body(PAYLOAD, FORM)
        
        assert first.boundary != second.boundary
    
    @pytest.mark.asyncio
    async def test_body_matches_golden_bytes(self, uploader):
        """Test body framing and content type."""
        body = uploader.build_body(PAYLOAD, FORM)
        
        assert body.content_type == 'multipart/form-data; boundary=BOUNDARY'
        assert await multipart_bytes(body) == GOLDEN_BODY
    
    @pytest.mark.asyncio
    async def test_field_order(self, uploader):
        """Test field order: form fields, then content type, then file."""
        data = await multipart_bytes(uploader.build_body(PAYLOAD, FORM))
        
        names = re.findall(rb'name="([^"]+)"', data)
        
        assert names == [
            b'key', b'acl', b'x-amz-algorithm', b'x-amz-credential',
            b'x-amz-date', b'policy', b'x-amz-signature', b'Content-Type', b'file',
        ]
    
    @pytest.mark.asyncio
    async def test_upload_returns_object_key(self, uploader, cdn_transport):
        """Test successful upload returns the form's key."""
        cdn_transport.posts.append(HttpResponse(204))
        
        key = await uploader.upload(PAYLOAD, FORM)
        
        assert key == 'attachments/42'
        method, url, headers, body = cdn_transport.calls[0]
        assert method == 'POST'
        assert url == 'https://cdn.example.org/attachments/'
        assert body == GOLDEN_BODY
        assert headers['Content-Type'] == 'multipart/form-data; boundary=BOUNDARY'
        assert headers['Content-Length'] == str(len(GOLDEN_BODY))
    
    @pytest.mark.asyncio
    async def test_progress_forwarded(self, uploader, cdn_transport):
        """Test progress callback reaches the transport."""
        cdn_transport.posts.append(HttpResponse(204))
        reported = []
        
        await uploader.upload(PAYLOAD, FORM, progress=reported.append)
        
        assert reported == [1.0]
    
    @pytest.mark.asyncio
    async def test_connectivity_failure_not_retried(self, uploader, cdn_transport):
        """Test connectivity failure propagates after one attempt."""
        cdn_transport.posts.append(ConnectivityFailure("reset"))
        
        with pytest.raises(ConnectivityFailure) as exc_info:
            await uploader.upload(PAYLOAD, FORM)
        
        assert exc_info.value.retryable
        assert len(cdn_transport.calls) == 1
    
    @pytest.mark.asyncio
    async def test_error_status_is_fatal(self, uploader, cdn_transport):
        """Test non-2xx response raises UploadRejected."""
        cdn_transport.posts.append(HttpResponse(403))
        
        with pytest.raises(UploadRejected) as exc_info:
            await uploader.upload(PAYLOAD, FORM)
        
        assert exc_info.value.status == 403
        assert not exc_info.value.retryable
        assert len(cdn_transport.calls) == 1
