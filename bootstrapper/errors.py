"""Exception hierarchy for template application.

Every failure aborts the whole run.  Callers catch :class:`TemplateError`
at the top level and report it; nothing below the CLI swallows these.
"""

from __future__ import annotations


class TemplateError(Exception):
    """Base class for every error raised while applying the template."""


class RecipeLoadFailure(TemplateError):
    """A named recipe could not be found, or raised while executing."""

    def __init__(self, recipe: str, message: str) -> None:
        self.recipe = recipe
        super().__init__(f"Recipe '{recipe}': {message}")


class CallbackFailure(TemplateError):
    """A deferred callback raised while its phase was being drained."""

    def __init__(self, phase: str, source: str | None, index: int, message: str) -> None:
        self.phase = phase
        self.source = source
        self.index = index
        origin = f" registered by '{source}'" if source else ""
        super().__init__(
            f"Callback #{index}{origin} failed during {phase}: {message}"
        )


class LifecycleError(TemplateError):
    """Programming error in how phases are registered or drained."""


class DuplicatePhaseInvocation(LifecycleError):
    """A phase was drained twice, or registered against after draining."""

    def __init__(self, phase: str, message: str) -> None:
        self.phase = phase
        super().__init__(f"Phase {phase}: {message}")


class PhaseOrderViolation(LifecycleError):
    """A phase was drained while an earlier phase was still pending."""

    def __init__(self, phase: str, pending: str) -> None:
        self.phase = phase
        self.pending = pending
        super().__init__(
            f"Cannot drain {phase} before {pending} has been drained"
        )


class ExternalStepFailure(TemplateError):
    """An external tool (bundler, rails) exited unsuccessfully.

    ``output`` holds the tool's own diagnostics verbatim.
    """

    def __init__(self, step: str, returncode: int, output: str) -> None:
        self.step = step
        self.returncode = returncode
        self.output = output
        message = f"{step} failed with exit code {returncode}"
        if output:
            message = f"{message}\n{output}"
        super().__init__(message)


class FileActionError(TemplateError):
    """A file action targeted an invalid path or could not be applied."""

    def __init__(self, action: str, path: str, message: str) -> None:
        self.action = action
        self.path = path
        super().__init__(f"{action} {path}: {message}")
