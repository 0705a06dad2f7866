"""
Shared outbound HTTP client for the Evista backend
"""
import logging
from typing import Optional

import httpx

from evista_partner.config.settings import settings

logger = logging.getLogger(__name__)


class HttpClientConfig:
    """Owns the single httpx.AsyncClient used by every route"""

    def __init__(self):
        self.client: Optional[httpx.AsyncClient] = None

    async def connect(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        """Create the client. Tests pass an httpx.MockTransport."""
        self.client = httpx.AsyncClient(
            timeout=settings.REQUEST_TIMEOUT,
            headers={"Accept": "application/json"},
            transport=transport,
        )
        logger.info("✅ HTTP client ready for %s", settings.EVISTA_API_URL)

    async def close(self):
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("✅ HTTP client closed")

    def get_client(self) -> httpx.AsyncClient:
        if self.client is None:
            raise RuntimeError("HTTP client not initialised")
        return self.client


# Global client instance
http_config = HttpClientConfig()


def get_http_client() -> httpx.AsyncClient:
    """FastAPI dependency"""
    return http_config.get_client()
