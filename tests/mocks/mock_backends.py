from typing import Dict, List, Optional

from stockstream.core.exceptions import AlertPublishError, CacheUnavailableError
from stockstream.schemas.alert import LowStockAlertMessage


class MockProductCache:
    """In-memory stand-in for ProductCache (no expiry, TTLs are recorded)."""

    def __init__(self):
        self.store: Dict[str, bytes] = {}
        self.ttls: Dict[str, int] = {}
        self.generations: Dict[str, int] = {}
        self.calls: list = []  # Track calls for testing
        self.should_fail = False  # Toggle to test error scenarios

    def _check(self):
        if self.should_fail:
            raise CacheUnavailableError("cache down")

    async def get(self, key: str) -> Optional[bytes]:
        self.calls.append(("get", key))
        self._check()
        return self.store.get(key)

    async def get_generation(self, key: str) -> int:
        self.calls.append(("get_generation", key))
        self._check()
        return self.generations.get(key, 0)

    async def set_if_generation(self, key: str, value: bytes, ttl: int, generation: int) -> bool:
        self.calls.append(("set", key))
        self._check()
        if self.generations.get(key, 0) != generation:
            return False
        self.store[key] = value
        self.ttls[key] = ttl
        return True

    async def invalidate(self, key: str) -> None:
        self.calls.append(("invalidate", key))
        self._check()
        self.generations[key] = self.generations.get(key, 0) + 1
        self.store.pop(key, None)
        self.ttls.pop(key, None)

    async def close(self) -> None:
        pass


class MockAlertPublisher:
    """Records alerts instead of sending them to RabbitMQ."""

    def __init__(self, threshold: int = 10):
        self.threshold = threshold
        self.published: List[LowStockAlertMessage] = []
        self.should_fail = False

    async def publish_low_stock(self, product_id: int, stock_level: int) -> LowStockAlertMessage:
        if self.should_fail:
            raise AlertPublishError("broker unreachable")
        message = LowStockAlertMessage.create(product_id, stock_level, self.threshold)
        self.published.append(message)
        return message

    async def close(self) -> None:
        pass

    def clear_history(self):
        """Clear test history"""
        self.published = []
