"""Transports to the chat service and the storage origins."""
from .models import HttpResponse, ServiceRequest
from .protocols import CdnTransport, ProgressCallback, RequestChannel, SocketChannel
from .http import AiohttpCdnTransport, stream_body
from .rest import RestChannel
from .websocket import WebSocketChannel

__all__ = [
    'HttpResponse',
    'ServiceRequest',
    'CdnTransport',
    'ProgressCallback',
    'RequestChannel',
    'SocketChannel',
    'AiohttpCdnTransport',
    'stream_body',
    'RestChannel',
    'WebSocketChannel',
]
