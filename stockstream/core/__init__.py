"""
Core module exports.
"""
from .exceptions import (
    BaseServiceError,
    InventoryStoreError,
    LockTimeoutError,
    CacheError,
    CacheUnavailableError,
    AlertChannelError,
    AlertPublishError,
    AlertConsumerError,
)

from .config import Settings, get_settings
