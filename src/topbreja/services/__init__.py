"""Business logic services for the TopBreja application."""

from .auth_cache import MemoryAuthCache, RedisAuthCache
from .engagement_state import EngagementState, OptimisticToggle
from .storage import StorageResolver

__all__ = [
    "EngagementState",
    "OptimisticToggle",
    "MemoryAuthCache",
    "RedisAuthCache",
    "StorageResolver",
]
