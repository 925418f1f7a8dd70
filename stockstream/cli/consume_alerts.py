# stockstream/cli/consume_alerts.py
import click

from stockstream.core import logging_config  # noqa: F401  configures logging on import
from stockstream.core.config import get_settings
from stockstream.services.alert_consumer import LowStockAlertConsumer


@click.command()
@click.option('--retries', default=15, show_default=True, help='Connection attempts before giving up')
@click.option('--delay', default=2.0, show_default=True, help='Seconds between connection attempts')
def consume_alerts(retries, delay):
    """Drain the low-stock alert queue until interrupted (Ctrl+C)"""
    consumer = LowStockAlertConsumer(get_settings())
    consumer.connect(retries=retries, delay=delay)
    consumer.run()

if __name__ == "__main__":
    consume_alerts()
