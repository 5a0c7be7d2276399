"""Lifecycle phases and the hook registry.

Recipes hand deferred work to a :class:`HookRegistry` owned by the running
orchestrator.  Each phase's queue is drained exactly once, in registration
order, when the orchestrator announces that the phase has been reached.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from .errors import CallbackFailure, DuplicatePhaseInvocation, PhaseOrderViolation

Callback = Callable[[], None]


class Phase(Enum):
    """Points in the build at which deferred work becomes safe to run."""

    IMMEDIATE = "immediate"
    POST_DEPENDENCY_INSTALL = "post-dependency-install"
    POST_GENERATOR_RUN = "post-generator-run"

    @property
    def order(self) -> int:
        return _PHASE_ORDER.index(self)


_PHASE_ORDER: list[Phase] = [
    Phase.IMMEDIATE,
    Phase.POST_DEPENDENCY_INSTALL,
    Phase.POST_GENERATOR_RUN,
]


@dataclass(frozen=True)
class _Entry:
    callback: Callback
    source: str | None


class HookRegistry:
    """Ordered deferred callbacks keyed by :class:`Phase`.

    ``IMMEDIATE`` is open while recipes load: callbacks registered for it run
    inside :meth:`register`.  Once a phase starts draining it is closed, and
    registering against it or draining it again raises
    :class:`DuplicatePhaseInvocation`.

    A failing callback aborts the drain.  Callbacks queued after it are
    discarded and the phase still counts as drained.
    """

    def __init__(self) -> None:
        self._queues: dict[Phase, list[_Entry]] = {phase: [] for phase in Phase}
        self._closed: set[Phase] = set()
        self.invoked: dict[Phase, int] = {phase: 0 for phase in Phase}

    # -- Registration ------------------------------------------------------

    def register(
        self,
        phase: Phase,
        callback: Callback,
        *,
        source: str | None = None,
    ) -> None:
        """Queue *callback* for *phase* (or run it now for ``IMMEDIATE``)."""
        if not callable(callback):
            raise TypeError(f"Callback for {phase.value} must be callable, got {callback!r}")
        if phase in self._closed:
            raise DuplicatePhaseInvocation(
                phase.value, "cannot register a callback after the phase was drained"
            )

        entry = _Entry(callback=callback, source=source)
        if phase is Phase.IMMEDIATE:
            self._invoke(phase, entry, self.invoked[phase] + 1)
            self.invoked[phase] += 1
            return
        self._queues[phase].append(entry)

    # -- Draining ----------------------------------------------------------

    def drain(self, phase: Phase) -> int:
        """Invoke and clear every callback queued for *phase*.

        Returns:
            The number of callbacks invoked.

        Raises:
            DuplicatePhaseInvocation: The phase was already drained.
            PhaseOrderViolation: An earlier phase has not been drained yet.
            CallbackFailure: A callback raised; remaining ones were dropped.
        """
        if phase in self._closed:
            raise DuplicatePhaseInvocation(phase.value, "already drained")
        for earlier in _PHASE_ORDER[: phase.order]:
            if earlier not in self._closed:
                raise PhaseOrderViolation(phase.value, earlier.value)

        self._closed.add(phase)
        queue = self._queues[phase]
        self._queues[phase] = []

        count = 0
        for index, entry in enumerate(queue, start=1):
            self._invoke(phase, entry, index)
            count += 1
            self.invoked[phase] += 1
        return count

    # -- Introspection -----------------------------------------------------

    def pending(self, phase: Phase) -> int:
        """Number of callbacks still waiting for *phase*."""
        return len(self._queues[phase])

    def is_drained(self, phase: Phase) -> bool:
        return phase in self._closed

    # -- Internal ----------------------------------------------------------

    @staticmethod
    def _invoke(phase: Phase, entry: _Entry, index: int) -> None:
        try:
            entry.callback()
        except CallbackFailure:
            raise
        except Exception as exc:
            raise CallbackFailure(phase.value, entry.source, index, str(exc)) from exc
