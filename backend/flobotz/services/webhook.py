from typing import Dict

import httpx

from flobotz.core.logging import webhook_logger
from flobotz.core.monitoring import record_webhook_delivery


class WebhookNotifier:
    """Forwards finished assistant turns to the automation webhook.

    ``notify`` never raises: the chat response has already been committed by
    the time it runs, so every failure is logged and counted instead.
    """

    def __init__(self, client: httpx.AsyncClient, url: str, enabled: bool = True):
        self.client = client
        self.url = url
        self.enabled = enabled

    @classmethod
    def from_config(cls, config: Dict) -> "WebhookNotifier":
        client = httpx.AsyncClient(timeout=config["timeout"])
        return cls(client, url=config["url"], enabled=config["enabled"])

    async def notify(self, chat_id: str, user_id: str, message: str) -> bool:
        if not self.enabled:
            record_webhook_delivery("skipped")
            return False

        payload = {"chatId": chat_id, "userId": user_id, "message": message}
        try:
            response = await self.client.post(self.url, json=payload)
        except Exception as e:
            webhook_logger.error(
                "Webhook delivery failed",
                chat_id=chat_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            record_webhook_delivery("failed")
            return False

        if response.is_error:
            webhook_logger.warning(
                "Webhook rejected notification",
                chat_id=chat_id,
                status_code=response.status_code,
            )
            record_webhook_delivery("rejected")
            return False

        webhook_logger.info("Webhook notified", chat_id=chat_id, status_code=response.status_code)
        record_webhook_delivery("delivered")
        return True

    async def aclose(self) -> None:
        await self.client.aclose()
