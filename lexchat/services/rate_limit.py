"""Per-credential request rate gate."""

import os
from dataclasses import dataclass, field

from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from lexchat.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimitConfig:
    """Configuration for the chat rate gate."""

    requests_per_minute: int = field(default_factory=lambda: int(os.getenv("CHAT_REQUESTS_PER_MINUTE", "20")))


class ChatRateLimiter:
    """Moving-window rate limiter keyed by session credential."""

    def __init__(self, config: RateLimitConfig | None = None):
        """Initialize rate limiter.

        Args:
            config: Rate gate configuration
        """
        self.config = config or RateLimitConfig()
        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)
        self.request_limit = parse(f"{self.config.requests_per_minute}/minute")

    def is_rate_limited(self, key: str) -> bool:
        """Record a request for ``key`` and report whether it exceeds the limit."""
        if self.limiter.hit(self.request_limit, "chat", key):
            return False

        logger.warning(f"Rate limit exceeded for key {key[:12]}...")
        return True

    def reset(self) -> None:
        """Clear all recorded hits."""
        self.storage.reset()


rate_limiter = ChatRateLimiter()
