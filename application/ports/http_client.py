# application/ports/http_client.py
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional


@dataclass(frozen=True)
class HttpResponse:
    status: int
    text: str
    headers: Dict[str, str] = field(default_factory=dict)
    url: str = ""


class HttpClientPort(ABC):
    @abstractmethod
    async def request(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[str] = None,
    ) -> HttpResponse:
        """
        Perform one HTTP request. Network-level failures raise TransportError.
        """
        ...
