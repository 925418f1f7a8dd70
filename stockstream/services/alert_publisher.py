"""
Producer side of the low-stock alert channel (RabbitMQ).

pika's BlockingConnection is not thread-safe and blocks the caller, so all
broker I/O runs on a dedicated single-thread executor and each publish is
bounded by ALERT_PUBLISH_TIMEOUT_SECONDS. The channel is in publisher-confirm
mode: basic_publish returns only once the broker has taken the message.

Errors are raised, never swallowed here. Callers that treat alerts as best
effort (the purchase service) catch AlertPublishError themselves.
"""

import asyncio
import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import pika
from pika.exceptions import AMQPError

from stockstream.core.config import Settings, get_settings
from stockstream.core.exceptions import AlertPublishError
from stockstream.schemas.alert import LowStockAlertMessage

logger = logging.getLogger(__name__)


class AlertPublisher:
    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.url = settings.RABBITMQ_URL
        self.queue_name = settings.LOW_STOCK_QUEUE
        self.threshold = settings.LOW_STOCK_THRESHOLD
        self.publish_timeout = settings.ALERT_PUBLISH_TIMEOUT_SECONDS
        self._connection = None
        self._channel = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="alert-publisher")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def publish_low_stock(self, product_id: int, stock_level: int) -> LowStockAlertMessage:
        """Publish a low-stock alert; raises AlertPublishError on any failure."""
        message = LowStockAlertMessage.create(product_id, stock_level, self.threshold)
        loop = asyncio.get_running_loop()
        try:
            await asyncio.wait_for(
                loop.run_in_executor(self._executor, self._publish_blocking, message.to_body()),
                timeout=self.publish_timeout,
            )
        except asyncio.TimeoutError as e:
            raise AlertPublishError(
                f"Timed out after {self.publish_timeout}s publishing alert for product {product_id}"
            ) from e
        logger.info("Low-stock alert published: product %s, stock %s", product_id, stock_level)
        return message

    async def close(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(self._executor, self._disconnect)
        self._executor.shutdown(wait=False)

    # ------------------------------------------------------------------
    # Broker I/O (executor thread only)
    # ------------------------------------------------------------------
    def _connection_parameters(self) -> pika.URLParameters:
        params = pika.URLParameters(self.url)
        params.socket_timeout = self.publish_timeout
        params.blocked_connection_timeout = self.publish_timeout
        return params

    def _ensure_channel(self):
        if self._channel is not None and self._channel.is_open:
            return self._channel
        self._disconnect()
        self._connection = pika.BlockingConnection(self._connection_parameters())
        channel = self._connection.channel()
        channel.queue_declare(queue=self.queue_name, durable=True)
        channel.confirm_delivery()
        self._channel = channel
        logger.info("Connected to RabbitMQ, queue '%s' declared", self.queue_name)
        return channel

    def _publish_blocking(self, body: bytes) -> None:
        try:
            channel = self._ensure_channel()
            channel.basic_publish(
                exchange="",
                routing_key=self.queue_name,
                body=body,
                properties=pika.BasicProperties(
                    delivery_mode=2,  # persistent
                    content_type="application/json",
                    message_id=str(uuid.uuid4()),
                ),
                mandatory=True,
            )
        except (AMQPError, OSError) as e:
            # Drop the broken connection; the next publish reconnects.
            self._disconnect()
            raise AlertPublishError(f"Failed to publish to '{self.queue_name}': {e!r}") from e

    def _disconnect(self) -> None:
        connection, self._connection, self._channel = self._connection, None, None
        if connection is not None and connection.is_open:
            try:
                connection.close()
            except AMQPError:
                logger.debug("Ignoring error while closing RabbitMQ connection", exc_info=True)
