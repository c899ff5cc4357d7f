"""Infrastructure layer: throttling, retries, concurrency, progress, config,
search providers and the chat model factory."""

from deep_research.infrastructure.concurrency import run_all
from deep_research.infrastructure.config import (
    ModelConfig,
    RetryPolicy,
    SearchConfig,
    TraversalConfig,
    config_from_env,
    load_config_from_json,
)
from deep_research.infrastructure.progress import ProgressSink, ProgressTracker
from deep_research.infrastructure.rate_limiter import RateLimiter
from deep_research.infrastructure.retry import (
    RETRY_AFTER_GUARD,
    backoff_delay,
    is_rate_limit_error,
    is_transient_error,
    run_with_retry,
)

__all__ = [
    # Concurrency
    "run_all",
    # Config
    "ModelConfig",
    "RetryPolicy",
    "SearchConfig",
    "TraversalConfig",
    "config_from_env",
    "load_config_from_json",
    # Progress
    "ProgressSink",
    "ProgressTracker",
    # Throttling / retry
    "RETRY_AFTER_GUARD",
    "RateLimiter",
    "backoff_delay",
    "is_rate_limit_error",
    "is_transient_error",
    "run_with_retry",
]
