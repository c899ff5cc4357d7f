"""Configuration dataclasses for the deep research engine.

Each config is a plain ``dataclass`` with a ``validate()`` method that raises
``ValueError`` on invalid values.  Configs are **frozen** so a single
instance can be shared by every branch of a run without risk of mutation.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields
from typing import Any


def _filtered(cls: type, data: Mapping[str, Any]) -> dict[str, Any]:
    valid_keys = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in valid_keys}


# ===================================================================== #
#  Retry policy                                                          #
# ===================================================================== #

@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff schedule.

    Attributes
    ----------
    max_retries:
        Retries after the first attempt.
    base_delay:
        Seconds before the first retry; doubled for each further retry.
    """

    max_retries: int = 3
    base_delay: float = 10.0

    def validate(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")

    def delays(self) -> list[float]:
        """The full delay schedule, e.g. ``[10.0, 20.0, 40.0]``."""
        return [self.base_delay * (2 ** i) for i in range(self.max_retries)]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RetryPolicy:
        cfg = cls(**_filtered(cls, data))
        cfg.validate()
        return cfg


# ===================================================================== #
#  Traversal configuration                                               #
# ===================================================================== #

@dataclass(frozen=True)
class TraversalConfig:
    """Parameters governing how the engine walks the research tree.

    Attributes
    ----------
    max_concurrency:
        Ceiling on concurrently running top-level branches, applied on top
        of the requested breadth.
    content_char_limit:
        Retrieved content is hard-truncated to this many characters per item
        before extraction.
    search_min_interval:
        Minimum seconds between two search calls (shared by all branches).
    search_retry:
        Backoff schedule for search-provider rate limiting.
    """

    max_concurrency: int = 3
    content_char_limit: int = 25_000
    search_min_interval: float = 5.0
    search_retry: RetryPolicy = field(default_factory=RetryPolicy)

    def __post_init__(self) -> None:
        # from_dict / JSON hand us a plain mapping for the nested policy.
        if isinstance(self.search_retry, Mapping):
            object.__setattr__(
                self, "search_retry", RetryPolicy.from_dict(self.search_retry)
            )

    def validate(self) -> None:
        if self.max_concurrency < 1:
            raise ValueError(
                f"max_concurrency must be >= 1, got {self.max_concurrency}"
            )
        if self.content_char_limit < 1:
            raise ValueError(
                f"content_char_limit must be >= 1, got {self.content_char_limit}"
            )
        if self.search_min_interval < 0:
            raise ValueError(
                f"search_min_interval must be >= 0, got {self.search_min_interval}"
            )
        self.search_retry.validate()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TraversalConfig:
        cfg = cls(**_filtered(cls, data))
        cfg.validate()
        return cfg


# ===================================================================== #
#  Search configuration                                                  #
# ===================================================================== #

_VALID_SEARCH_PROVIDERS = frozenset({"brave", "grounded"})


@dataclass(frozen=True)
class SearchConfig:
    """Which search provider to use and how to talk to it.

    Attributes
    ----------
    provider:
        Registered provider name: ``"brave"`` or ``"grounded"`` (the
        configured chat model searches the web itself).
    api_key:
        Provider credential.  Empty means "read it from the environment".
        Unused by ``"grounded"``.
    results_per_query:
        Number of results requested per search, or cited sources kept for
        ``"grounded"``.
    timeout:
        HTTP timeout in seconds.
    max_retries:
        Provider-level retries on HTTP 429 before a rate-limit error is
        raised to the traversal.
    base_retry_delay:
        Base delay for the provider-level backoff.
    """

    provider: str = "brave"
    api_key: str = ""
    results_per_query: int = 10
    timeout: float = 30.0
    max_retries: int = 3
    base_retry_delay: float = 2.0

    def validate(self) -> None:
        if self.provider not in _VALID_SEARCH_PROVIDERS:
            raise ValueError(
                f"provider must be one of {sorted(_VALID_SEARCH_PROVIDERS)}, "
                f"got '{self.provider}'"
            )
        if not (1 <= self.results_per_query <= 20):
            raise ValueError(
                f"results_per_query must be in [1, 20], got {self.results_per_query}"
            )
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.base_retry_delay < 0:
            raise ValueError(
                f"base_retry_delay must be >= 0, got {self.base_retry_delay}"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SearchConfig:
        cfg = cls(**_filtered(cls, data))
        cfg.validate()
        return cfg


# ===================================================================== #
#  Model configuration                                                   #
# ===================================================================== #

_VALID_MODEL_PROVIDERS = frozenset({"anthropic", "openai"})

# Model used when a provider is chosen without naming a model.
DEFAULT_MODELS: dict[str, str] = {
    "anthropic": "claude-sonnet-4-5-20250929",
    "openai": "gpt-4o",
}


@dataclass(frozen=True)
class ModelConfig:
    """Chat model used by the expansion, extraction and summary services.

    Attributes
    ----------
    provider:
        ``"anthropic"`` or ``"openai"``.
    model:
        Model identifier passed to the LangChain chat model.  Defaults to
        the provider's entry in :data:`DEFAULT_MODELS`.
    temperature:
        Sampling temperature.
    structured_output:
        If ``True``, services request typed output via
        ``with_structured_output``; otherwise they parse plain text.
    """

    provider: str = "anthropic"
    model: str = DEFAULT_MODELS["anthropic"]
    temperature: float = 0.5
    structured_output: bool = True

    def validate(self) -> None:
        if self.provider not in _VALID_MODEL_PROVIDERS:
            raise ValueError(
                f"provider must be one of {sorted(_VALID_MODEL_PROVIDERS)}, "
                f"got '{self.provider}'"
            )
        if not self.model:
            raise ValueError("model must not be empty")
        if not (0.0 <= self.temperature <= 2.0):
            raise ValueError(
                f"temperature must be in [0, 2], got {self.temperature}"
            )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ModelConfig:
        kwargs = _filtered(cls, data)
        if "model" not in kwargs and kwargs.get("provider") in DEFAULT_MODELS:
            kwargs["model"] = DEFAULT_MODELS[kwargs["provider"]]
        cfg = cls(**kwargs)
        cfg.validate()
        return cfg


# ===================================================================== #
#  Loaders                                                               #
# ===================================================================== #

_CONFIG_MAP: dict[str, type] = {
    "traversal": TraversalConfig,
    "search": SearchConfig,
    "model": ModelConfig,
}


def load_config_from_json(json_str: str) -> dict[str, Any]:
    """Parse a JSON string into a dict of typed config objects.

    The JSON is expected to be an object whose top-level keys correspond to
    config section names (``traversal``, ``search``, ``model``).  Missing
    sections get their defaults; unknown sections are preserved as raw data.
    """
    raw = json.loads(json_str)
    if not isinstance(raw, dict):
        raise ValueError("Top-level JSON must be an object")
    result: dict[str, Any] = {name: cls() for name, cls in _CONFIG_MAP.items()}
    for section, data in raw.items():
        cls = _CONFIG_MAP.get(section)
        if cls is not None and isinstance(data, dict):
            result[section] = cls.from_dict(data)
        else:
            result[section] = data
    return result


def config_from_env(
    environ: Mapping[str, str] | None = None,
    base: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Overlay environment variables on *base* (defaults if omitted).

    Reads ``BRAVE_API_KEY``, ``DEEP_RESEARCH_SEARCH_PROVIDER``,
    ``DEEP_RESEARCH_MODEL_PROVIDER`` and ``DEEP_RESEARCH_MODEL``.
    """
    env = os.environ if environ is None else environ
    sections: dict[str, Any] = (
        dict(base) if base is not None else {n: c() for n, c in _CONFIG_MAP.items()}
    )

    search: SearchConfig = sections.get("search") or SearchConfig()
    if env.get("DEEP_RESEARCH_SEARCH_PROVIDER"):
        search = SearchConfig.from_dict(
            {**search.to_dict(), "provider": env["DEEP_RESEARCH_SEARCH_PROVIDER"]}
        )
    if env.get("BRAVE_API_KEY") and not search.api_key:
        search = SearchConfig.from_dict({**search.to_dict(), "api_key": env["BRAVE_API_KEY"]})
    sections["search"] = search

    model: ModelConfig = sections.get("model") or ModelConfig()
    overrides: dict[str, Any] = {}
    if env.get("DEEP_RESEARCH_MODEL_PROVIDER"):
        overrides["provider"] = env["DEEP_RESEARCH_MODEL_PROVIDER"]
    if env.get("DEEP_RESEARCH_MODEL"):
        overrides["model"] = env["DEEP_RESEARCH_MODEL"]
    if overrides:
        current = model.to_dict()
        default_model = DEFAULT_MODELS.get(current["provider"])
        if "model" not in overrides and current["model"] == default_model:
            del current["model"]
        model = ModelConfig.from_dict({**current, **overrides})
    sections["model"] = model

    sections.setdefault("traversal", TraversalConfig())
    return sections
