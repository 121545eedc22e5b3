"""
Chat gateway client.

The WhatsApp socket (pairing, reconnects, encoding) runs in a separate
gateway process; this module only calls its send endpoint. ``make_delivery_processor``
adapts the client to the delivery queue's ``process(item)`` contract.
"""

import httpx

from app.infrastructure.observability.logging import get_logger
from app.models.domain.queue_domain import DeliveryOutcome, QueueItem
from app.services.delivery_queue import DeliveryFailure, QueueProcessor

logger = get_logger(__name__)

REQUEST_TIMEOUT = 20  # seconds


class ChatGatewayClient:
    """Sends a single text message through the chat gateway."""

    def __init__(
        self,
        endpoint: str,
        token: str | None = None,
        timeout: float = REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.endpoint = endpoint
        self._token = token
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def send_notification(self, recipient: str, body: str) -> dict:
        """
        Send one message.

        Returns:
            {"success": bool, "error": str | None, "message_id": str | None}

        Raises:
            DeliveryFailure: if the gateway cannot be reached
        """
        try:
            response = await self._client.post(
                self.endpoint,
                json={"recipient": recipient, "message": body},
                headers=self._headers(),
            )
        except httpx.RequestError as e:
            raise DeliveryFailure(f"Chat gateway unreachable: {e}") from e

        try:
            data = response.json() if response.text else {}
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.is_success:
            error = data.get("error") or data.get("message") or f"HTTP {response.status_code}"
            logger.warning(
                "Chat gateway rejected message",
                recipient=recipient,
                status_code=response.status_code,
                error=error,
            )
            return {"success": False, "error": error, "message_id": None}

        if data.get("success") is False:
            return {
                "success": False,
                "error": data.get("error") or "Gateway reported failure",
                "message_id": None,
            }

        return {"success": True, "error": None, "message_id": data.get("messageId")}


def make_delivery_processor(client: ChatGatewayClient) -> QueueProcessor:
    """Build the delivery queue callback that sends each item through ``client``."""

    async def process(item: QueueItem) -> DeliveryOutcome:
        result = await client.send_notification(item.recipient, item.body)
        return DeliveryOutcome(item_id=item.id, success=result["success"], error=result["error"])

    return process
