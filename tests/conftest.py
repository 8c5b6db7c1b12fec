"""Pytest fixtures for attachkit tests."""
from collections import deque

import pytest
from Crypto.Random import get_random_bytes

from attachkit.core.transport import HttpResponse
from attachkit.core.upload import EncryptedPayload


class FakeCdnTransport:
    """
    Scripted CdnTransport.
    
    Each queue holds HttpResponse objects or exceptions to raise, consumed
    in order. Data PUTs and zero-length probe PUTs have separate queues.
    """
    
    def __init__(self):
        self.calls = []
        self.posts = deque()
        self.puts = deque()
        self.probes = deque()
    
    def _next(self, queue, default):
        outcome = queue.popleft() if queue else default
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome
    
    async def post(self, url, headers, body=None, progress=None):
        self.calls.append(('POST', url, dict(headers), body))
        response = self._next(
            self.posts,
            HttpResponse(201, {'Location': 'https://storage.example.org/upload?session=1'})
        )
        if body and progress:
            progress(1.0)
        return response
    
    async def open_session(self, url, headers):
        return await self.post(url, headers)
    
    async def put(self, url, headers, body=None, progress=None):
        if body:
            self.calls.append(('PUT', url, dict(headers), body))
            response = self._next(self.puts, HttpResponse(200))
            if progress:
                progress(1.0)
            return response
        self.calls.append(('PROBE', url, dict(headers), body))
        return self._next(self.probes, HttpResponse(200))
    
    def calls_of(self, kind):
        return [call for call in self.calls if call[0] == kind]


class FakeChannel:
    """Scripted RequestChannel / SocketChannel."""
    
    def __init__(self, response=None, error=None, usable=True):
        self.response = response
        self.error = error
        self.usable = usable
        self.requests = []
    
    def can_accept_requests(self):
        return self.usable
    
    async def request(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def cdn_transport():
    """Scripted storage origin transport."""
    return FakeCdnTransport()


@pytest.fixture
def channel_factory():
    """Factory for scripted service channels."""
    return FakeChannel


@pytest.fixture
def payload():
    """A small encrypted payload with random key and digest."""
    return EncryptedPayload(
        ciphertext=get_random_bytes(1000),
        key=get_random_bytes(64),
        digest=get_random_bytes(32)
    )


@pytest.fixture
def form_v2_data():
    """Sample v2 upload form as returned by the service."""
    return {
        'acl': 'private',
        'key': 'attachments/1234567890',
        'policy': 'eyJleHBpcmF0aW9uIjoiMjAyMC0wMS0wMVQwMDowMDowMFoifQ==',
        'algorithm': 'AWS4-HMAC-SHA256',
        'credential': 'AKIAEXAMPLE/20200101/us-east-1/s3/aws4_request',
        'date': '20200101T000000Z',
        'signature': 'abcdef0123456789',
        'attachmentId': 1234567890,
        'attachmentIdString': '1234567890',
    }


@pytest.fixture
def form_v3_data():
    """Sample v3 upload form as returned by the service."""
    return {
        'key': 'xyzCdnKey42',
        'cdn': 2,
        'signedUploadLocation': 'https://storage.example.org/upload/xyzCdnKey42?sig=abc',
        'headers': {'x-goog-resumable': 'start', 'host': 'storage.example.org'},
    }
