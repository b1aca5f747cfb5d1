import logging
import httpx
from typing import Optional

from shopdesk.core.config import settings

logger = logging.getLogger(__name__)


class PushClient:
    """HTTP client for the push gateway (FCM legacy HTTP API)."""

    def __init__(
        self,
        api_url: str = None,
        server_key: str = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url or settings.PUSH_API_URL
        self.server_key = server_key if server_key is not None else settings.PUSH_SERVER_KEY
        self.transport = transport
        self.client = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=settings.PUSH_TIMEOUT_SECONDS, transport=self.transport)
        return self.client

    async def send(self, token: str, title: str, body: str, data: Optional[dict] = None) -> bool:
        """
        Send one notification to a device token.

        POST {PUSH_API_URL}
        {
          "to": "<device token>",
          "notification": {"title": "...", "body": "..."},
          "data": {"type": "order_completed", "orderId": "..."}
        }

        Returns True when the gateway accepted the message. Any other
        outcome is logged and reported as False.
        """
        payload = {
            "to": token,
            "notification": {"title": title, "body": body},
            "data": {k: str(v) for k, v in (data or {}).items()},
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"key={self.server_key}",
        }

        try:
            client = await self._get_client()
            response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Push request failed: {str(e)}")
            return False

        if response.status_code != 200:
            logger.error(f"Push gateway error: {response.status_code} {response.text}")
            return False

        logger.info(f"Push sent: {title!r} ({payload['data'].get('type', '')})")
        return True

    async def close(self):
        if self.client:
            await self.client.aclose()
            self.client = None


# Global instance
push_client = PushClient()
