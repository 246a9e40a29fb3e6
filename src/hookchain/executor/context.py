"""Per-call execution state threaded through every hook of one ``exec`` call.

This module provides two dataclasses:

* :class:`HookRuntimes` -- scratch state private to the hook run in
  progress. A fresh instance is installed at the start of every hook-name
  run so chain-control flags never leak between phases.
* :class:`ExecutorContext` -- the mutable record an executor creates for a
  single ``exec`` call: the caller's parameters, the in-flight return
  value, the current error, and the runtimes of the running phase.

A context lives for exactly one call and is never shared between
concurrent calls.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Optional


@dataclass
class HookRuntimes:
    """Scratch values hooks use to coordinate within one phase.

    Attributes:
        plugin_name: Name of the plugin whose hook is running.
        hook_name: Name of the hook being run.
        return_value: Last non-``None`` value returned by a hook in this run.
        return_break_chain: Set by a hook to stop the chain after it returns.
        break_chain: Set by a hook to stop the chain before the next plugin
            and before the next hook name of the same phase.
        times: Number of hooks invoked so far in this run.
        index: Position of the running plugin in the plugin list.
        continue_on_error: When set, exceptions raised by hooks are logged
            and the next plugin still runs.
    """

    plugin_name: str = ""
    hook_name: str = ""
    return_value: Any = None
    return_break_chain: bool = False
    break_chain: bool = False
    times: int = 0
    index: Optional[int] = None
    continue_on_error: bool = False


@dataclass
class ExecutorContext:
    """Mutable record shared by every hook of one ``exec`` call.

    ``parameters`` is the object the caller passed in, not a copy: a before
    hook that mutates it is seen by later hooks and by the task.

    Attributes:
        parameters: Caller-supplied input.
        return_value: The task result, transformed by success hooks.
        error: The most recent error, set when a phase fails.
        hooks_runtimes: Scratch state of the phase in progress.
    """

    parameters: Any = None
    return_value: Any = None
    error: Optional[BaseException] = None
    hooks_runtimes: HookRuntimes = field(default_factory=HookRuntimes)

    def set_return_value(self, value: Any) -> None:
        """Replace the in-flight return value. Success hooks call this to transform results."""
        self.return_value = value

    def set_error(self, error: Optional[BaseException]) -> None:
        self.error = error

    def set_parameters(self, parameters: Any) -> None:
        self.parameters = parameters

    def reset_hooks_runtimes(
        self, hook_name: str = "", continue_on_error: bool = False
    ) -> HookRuntimes:
        """Install a fresh :class:`HookRuntimes` and return it."""
        self.hooks_runtimes = HookRuntimes(
            hook_name=hook_name, continue_on_error=continue_on_error
        )
        return self.hooks_runtimes

    def runtimes(self, **updates: Any) -> None:
        """Update selected :class:`HookRuntimes` fields.

        Raises:
            AttributeError: If an unknown field name is given.
        """
        known = {f.name for f in fields(HookRuntimes)}
        for key, value in updates.items():
            if key not in known:
                raise AttributeError(f"HookRuntimes has no field '{key}'")
            setattr(self.hooks_runtimes, key, value)

    def should_break_chain(self) -> bool:
        return self.hooks_runtimes.break_chain

    def should_break_chain_on_return(self) -> bool:
        return self.hooks_runtimes.return_break_chain

    def should_continue_on_error(self) -> bool:
        return self.hooks_runtimes.continue_on_error
