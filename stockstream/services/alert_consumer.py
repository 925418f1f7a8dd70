"""
Consumer side of the low-stock alert channel.

Runs as its own process (see stockstream.cli.consume_alerts). Deliveries are
acknowledged manually, so the channel is at-least-once:

- malformed body          -> nack, not requeued (dead-lettered / dropped)
- handler raises          -> nack, requeued, redelivered later
- handler succeeds        -> ack

Handlers must therefore tolerate seeing the same alert more than once.
"""

import logging
import time
from typing import Callable, Optional

import pika
from pika.exceptions import AMQPConnectionError
from pydantic import ValidationError

from stockstream.core.config import Settings, get_settings
from stockstream.core.exceptions import AlertConsumerError
from stockstream.schemas.alert import LowStockAlertMessage

logger = logging.getLogger(__name__)

AlertHandler = Callable[[LowStockAlertMessage], None]


def log_restock_warning(alert: LowStockAlertMessage) -> None:
    """Default handler: restocking itself is handled outside this service."""
    logger.warning(
        "LOW STOCK ALERT | product %s | stock %s | threshold %s | at %s UTC | restock required",
        alert.product_id,
        alert.stock_level,
        alert.threshold,
        alert.alert_time.strftime("%Y-%m-%d %H:%M:%S"),
    )


class LowStockAlertConsumer:
    def __init__(self, settings: Optional[Settings] = None, handler: Optional[AlertHandler] = None):
        settings = settings or get_settings()
        self.url = settings.RABBITMQ_URL
        self.queue_name = settings.LOW_STOCK_QUEUE
        self.prefetch_count = settings.ALERT_CONSUMER_PREFETCH
        self.handler = handler or log_restock_warning
        self.connection = None
        self.channel = None

    def connect(self, retries: int = 15, delay: float = 2) -> None:
        params = pika.URLParameters(self.url)
        for attempt in range(1, retries + 1):
            try:
                self.connection = pika.BlockingConnection(params)
                self.channel = self.connection.channel()
                self.channel.queue_declare(queue=self.queue_name, durable=True)
                self.channel.basic_qos(prefetch_count=self.prefetch_count)
                logger.info("Connected to RabbitMQ, consuming '%s'", self.queue_name)
                return
            except AMQPConnectionError:
                logger.warning("RabbitMQ not ready, retry %s/%s", attempt, retries)
                time.sleep(delay)
        raise AlertConsumerError("Cannot connect to RabbitMQ")

    # ── Consumer callback ─────────────────────────────────────────────
    def on_message(self, ch, method, properties, body: bytes) -> None:
        try:
            alert = LowStockAlertMessage.from_body(body)
        except ValidationError as e:
            logger.error("Malformed alert dropped: %s | body=%r", e, body[:200])
            ch.basic_nack(delivery_tag=method.delivery_tag, requeue=False)
            return

        try:
            self.handler(alert)
        except Exception:
            logger.exception("Handler failed for product %s, requeueing", alert.product_id)
            ch.basic_nack(delivery_tag=method.delivery_tag, requeue=True)
            return

        ch.basic_ack(delivery_tag=method.delivery_tag)
        logger.info("Alert for product %s processed and acknowledged", alert.product_id)

    def run(self) -> None:
        if self.channel is None:
            self.connect()
        self.channel.basic_consume(
            queue=self.queue_name,
            on_message_callback=self.on_message,
            auto_ack=False,
        )
        logger.info("Listening on '%s'", self.queue_name)
        try:
            self.channel.start_consuming()
        except KeyboardInterrupt:
            self.channel.stop_consuming()
        finally:
            self.close()

    def close(self) -> None:
        if self.connection is not None and self.connection.is_open:
            self.connection.close()
        logger.info("Alert consumer stopped")
