"""Canonical Pydantic models shared across all hookchain modules.

The models fall into two groups:

**Runtime options** -- passed to executors and bundled plugins:
    :class:`ExecutorConfig`, :class:`RetryOptions`, :class:`AbortOptions`.

**Persistent configuration** -- serialised as JSON in the user's config
directory and consumed by the CLI:
    :class:`RequestConfig`, :class:`PluginsConfig`, :class:`OutputConfig`,
    and :class:`GlobalConfig`.

All models use Pydantic v2.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_HOOK_ON_BEFORE = "on_before"
DEFAULT_HOOK_ON_EXEC = "on_exec"
DEFAULT_HOOK_ON_SUCCESS = "on_success"
DEFAULT_HOOK_ON_ERROR = "on_error"
DEFAULT_HOOK_ON_FINALLY = "on_finally"


# --- Executor ---


class ExecutorConfig(BaseModel):
    """Hook names an executor runs for each conceptual phase.

    ``before_hooks`` and ``after_hooks`` are ordered lists: every name runs
    across all plugins before the next name starts, and together they form
    one phase. A single string is accepted and wrapped in a list.

    Example::

        ExecutorConfig(before_hooks=["on_before", "on_build_url"])
    """

    model_config = ConfigDict(frozen=True)

    before_hooks: list[str] = Field(
        default_factory=lambda: [DEFAULT_HOOK_ON_BEFORE],
        description="Hook names run before the task",
    )
    after_hooks: list[str] = Field(
        default_factory=lambda: [DEFAULT_HOOK_ON_SUCCESS],
        description="Hook names run after the task succeeds",
    )
    exec_hook: str = Field(
        default=DEFAULT_HOOK_ON_EXEC,
        description="Hook name that may replace or wrap the task",
    )

    @field_validator("before_hooks", "after_hooks", mode="before")
    @classmethod
    def _normalize_hook_names(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


# --- Bundled plugins ---


SAFE_MAX_RETRIES = 16


class RetryOptions(BaseModel):
    """Settings for :class:`~hookchain.plugins.retry.RetryManager`.

    ``max_retries`` counts the retries made *after* the first attempt, so a
    task runs at most ``max_retries + 1`` times. Values are clamped to
    ``[0, 16]``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    max_retries: int = Field(default=3, description="Retries after the first attempt")
    retry_delay: float = Field(default=1.0, description="Delay in seconds between attempts")
    use_exponential_backoff: bool = Field(
        default=False, description="Double the delay after each failed attempt"
    )
    should_retry: Optional[Callable[[BaseException, int], bool]] = Field(
        default=None,
        description="Predicate (error, attempt_number) deciding whether to retry",
    )

    @field_validator("max_retries")
    @classmethod
    def _clamp_retries(cls, value: int) -> int:
        return min(max(0, value), SAFE_MAX_RETRIES)

    @field_validator("retry_delay")
    @classmethod
    def _non_negative_delay(cls, value: float) -> float:
        return max(0.0, value)


class AbortOptions(BaseModel):
    """Settings for :class:`~hookchain.plugins.abort.AbortPlugin`."""

    timeout: Optional[float] = Field(
        default=None, description="Abort the operation after this many seconds"
    )
    plugin_name: str = Field(default="AbortPlugin")


# --- Persistent configuration ---


class RequestConfig(BaseModel):
    """Default HTTP settings for :class:`~hookchain.request.RequestAdapter`.

    Extra keys are preserved in ``model_extra`` so plugins can carry their
    own per-request settings.
    """

    model_config = ConfigDict(extra="allow")

    base_url: Optional[str] = Field(default=None, description="Prefix for relative URLs")
    timeout: float = Field(default=30.0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=0, description="Retries after the first attempt")
    retry_delay: float = Field(default=1.0, description="Delay between retries in seconds")
    headers: dict[str, str] = Field(default_factory=dict, description="Default headers")


class PluginsConfig(BaseModel):
    """Explicit plugin allow/deny lists stored in :class:`GlobalConfig`."""

    enabled: list[str] = Field(default_factory=list)
    disabled: list[str] = Field(default_factory=list)


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/hookchain/config.json``.

    Loaded and saved by :func:`~hookchain.config.load_global_config` and
    :func:`~hookchain.config.save_global_config`. See
    :func:`~hookchain.config.resolve_config` for the precedence chain.
    """

    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
