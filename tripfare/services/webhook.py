import httpx
import asyncio
import logging
import time
from tripfare.core.config import settings
from tripfare.core.enums import WebhookEvent
from tripfare.core.metrics import webhook_deliveries, webhook_duration

logger = logging.getLogger(__name__)


async def send_webhook(event: WebhookEvent, payload: dict, retries: int | None = None) -> bool:

    if not settings.WEBHOOK_URL:
        logger.debug(f"No webhook URL configured, skipping {event}")
        return False

    if retries is None:
        retries = settings.WEBHOOK_RETRIES

    body = {"event": str(event), "data": payload}
    reference = payload.get("order_id") or payload.get("payment_intent_id")
    backoff = 1.0

    for attempt in range(1, retries + 1):
        start_time = time.time()
        try:
            async with httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT) as client:
                response = await client.post(settings.WEBHOOK_URL, json=body)

                if 200 <= response.status_code < 300:
                    webhook_deliveries.labels(status="success", retry_count=attempt - 1).inc()
                    webhook_duration.labels(status="success").observe(time.time() - start_time)
                    logger.info(f"Webhook {event} delivered for {reference}")
                    return True
                else:
                    logger.warning(
                        f"Webhook delivery failed (attempt {attempt}/{retries}): "
                        f"Status {response.status_code} for {reference}"
                    )
        except httpx.TimeoutException:
            logger.warning(
                f"Webhook timeout (attempt {attempt}/{retries}) for {reference}"
            )
        except httpx.HTTPError as e:
            logger.warning(
                f"Webhook delivery error (attempt {attempt}/{retries}): {e} "
                f"for {reference}"
            )
        webhook_duration.labels(status="failure").observe(time.time() - start_time)

        if attempt < retries:
            await asyncio.sleep(backoff)
            backoff *= 2.0

    webhook_deliveries.labels(status="failure", retry_count=retries).inc()
    logger.error(f"Webhook {event} failed after {retries} attempts for {reference}")
    return False
