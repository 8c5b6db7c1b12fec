"""Data models shared by the transports."""
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class ServiceRequest:
    """
    A request to the chat service.
    
    Channel agnostic: the same request can go over the websocket or REST.
    """
    verb: str
    path: str
    body: Optional[Any] = None
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class HttpResponse:
    """Status, headers and body of a storage origin response."""
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b''
    
    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
    
    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        value = self.headers.get(name)
        if value is not None:
            return value
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None
