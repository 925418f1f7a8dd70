class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    pass

class InventoryStoreError(BaseServiceError):
    """Raised when the inventory database fails (connectivity, conflicts, commit errors)."""
    pass

class LockTimeoutError(InventoryStoreError):
    """Raised when a product row lock could not be acquired in time."""
    pass

class CacheError(BaseServiceError):
    """Base exception for read cache errors."""
    pass

class CacheUnavailableError(CacheError):
    """Raised when the cache backend cannot be reached or times out."""
    pass

class AlertChannelError(BaseServiceError):
    """Base exception for low-stock alert channel errors."""
    pass

class AlertPublishError(AlertChannelError):
    """Raised when a low-stock alert could not be handed to the broker."""
    pass

class AlertConsumerError(AlertChannelError):
    """Raised when the alert consumer cannot connect to the broker."""
    pass
