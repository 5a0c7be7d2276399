"""Template orchestrator.

Drives one application of the template through its lifecycle:

NOT_STARTED → LOADING_RECIPES → DEPENDENCIES_INSTALLING →
DEPENDENCIES_INSTALLED → GENERATORS_RUNNING → GENERATORS_COMPLETE → DONE

Recipes execute one at a time in the given order.  After the last recipe the
declared gems are written to the Gemfile and the dependency installer runs;
``post-dependency-install`` callbacks are drained, the generator runner
runs, and ``post-generator-run`` callbacks are drained.  Any failure moves
the run to FAILED and is re-raised; no later phase is drained.
"""

from __future__ import annotations

import time
import traceback
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from rich.panel import Panel

from .actions import FileActions
from .config import Config
from .context import RecipeContext
from .errors import DuplicatePhaseInvocation, ExternalStepFailure, RecipeLoadFailure
from .gemfile import GemfileManifest
from .hooks import HookRegistry, Phase
from .recipes import Recipe, resolve
from .steps import BundleInstaller, GeneratorCall, GeneratorRunner, StepResult
from .templates import TemplateRenderer
from .utils import (
    console,
    format_duration,
    print_phase_header,
    print_warning,
    say_status,
)

Installer = Callable[[], StepResult]
GeneratorStep = Callable[[list[GeneratorCall]], StepResult]


class OrchestratorState(Enum):
    NOT_STARTED = "not-started"
    LOADING_RECIPES = "loading-recipes"
    DEPENDENCIES_INSTALLING = "dependencies-installing"
    DEPENDENCIES_INSTALLED = "dependencies-installed"
    GENERATORS_RUNNING = "generators-running"
    GENERATORS_COMPLETE = "generators-complete"
    DONE = "done"
    FAILED = "failed"


class RunReport(BaseModel):
    """Summary of one orchestration run, persisted next to the application."""

    app_path: str
    state: str
    history: list[str] = Field(default_factory=list)
    recipes: list[str] = Field(default_factory=list)
    gems: list[str] = Field(default_factory=list)
    generators: list[str] = Field(default_factory=list)
    callbacks: dict[str, int] = Field(default_factory=dict)
    steps: list[StepResult] = Field(default_factory=list)
    error: str | None = None
    started_at: str = ""
    duration: str = ""

    @property
    def success(self) -> bool:
        return self.state == OrchestratorState.DONE.value


class Orchestrator:
    """Applies an ordered list of recipes to the application in ``config.app_path``.

    Attributes:
        config: Settings for this run.
        recipes: Resolved recipes, in execution order.
        hooks: The run's hook registry; recipes reach it through their context.
        gems: Gem declarations collected from recipes.
        generators: Generator invocations queued by recipes.
        state: Current :class:`OrchestratorState`.
    """

    def __init__(
        self,
        config: Config,
        recipes: Iterable[str | Recipe],
        *,
        installer: Installer | None = None,
        generator_runner: GeneratorStep | None = None,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        resolved = resolve(recipes)
        known = {r.name for r in resolved}
        for name in config.skip_recipes:
            if name not in known:
                raise RecipeLoadFailure(name, "cannot skip a recipe that is not in the list")
        skipped = set(config.skip_recipes)
        self.recipes: list[Recipe] = [r for r in resolved if r.name not in skipped]

        self.hooks = HookRegistry()
        self.gems = GemfileManifest()
        self.generators: list[GeneratorCall] = []
        self.files = FileActions(config.app_path, renderer, context=self._template_context())
        self.context = RecipeContext(
            config, self.files, self.gems, self.hooks, self.generators
        )
        self.installer: Installer = installer or BundleInstaller(config)
        self.generator_runner: GeneratorStep = generator_runner or GeneratorRunner(config)

        self.state = OrchestratorState.NOT_STARTED
        self.history: list[OrchestratorState] = [self.state]
        self.executed: list[str] = []
        self.steps: list[StepResult] = []
        self.error: str | None = None
        self.started_at = ""
        self.duration = ""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> RunReport:
        """Execute the whole lifecycle once.

        Returns:
            The run report (state ``done``).

        Raises:
            TemplateError: Any failure; the orchestrator is left FAILED.
            DuplicatePhaseInvocation: ``run`` was called a second time.
        """
        if self.state is not OrchestratorState.NOT_STARTED:
            raise DuplicatePhaseInvocation("run", f"orchestrator is already {self.state.value}")

        self.started_at = datetime.now(timezone.utc).isoformat()
        start = time.monotonic()
        try:
            self._transition(OrchestratorState.LOADING_RECIPES)
            self._load_recipes()
            self.hooks.drain(Phase.IMMEDIATE)
            self._write_gemfile()

            self._transition(OrchestratorState.DEPENDENCIES_INSTALLING)
            self._run_step(self.installer)

            self._transition(OrchestratorState.DEPENDENCIES_INSTALLED)
            self._drain(Phase.POST_DEPENDENCY_INSTALL)

            self._transition(OrchestratorState.GENERATORS_RUNNING)
            self._run_step(lambda: self.generator_runner(list(self.generators)))

            self._transition(OrchestratorState.GENERATORS_COMPLETE)
            self._drain(Phase.POST_GENERATOR_RUN)

            self._transition(OrchestratorState.DONE)
        except Exception as exc:
            self.error = str(exc) or traceback.format_exc()
            self._transition(OrchestratorState.FAILED)
            raise
        finally:
            self.duration = format_duration(time.monotonic() - start)
            self._save_report()

        return self.report()

    def report(self) -> RunReport:
        return RunReport(
            app_path=str(self.config.app_path),
            state=self.state.value,
            history=[s.value for s in self.history],
            recipes=list(self.executed),
            gems=self.gems.names(),
            generators=[g.describe() for g in self.generators],
            callbacks={phase.value: self.hooks.invoked[phase] for phase in Phase},
            steps=list(self.steps),
            error=self.error,
            started_at=self.started_at,
            duration=self.duration,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _transition(self, state: OrchestratorState) -> None:
        self.state = state
        self.history.append(state)

    def _load_recipes(self) -> None:
        print_phase_header("Loading recipes")
        for recipe in self.recipes:
            console.print(f"[bold]recipe[/bold] {recipe.name}", highlight=False)
            try:
                recipe.apply(self.context.for_recipe(recipe.name))
            except Exception as exc:
                raise RecipeLoadFailure(recipe.name, str(exc) or type(exc).__name__) from exc
            self.executed.append(recipe.name)

    def _write_gemfile(self) -> None:
        if not len(self.gems):
            return
        self.gems.write(self.config.gemfile_path)

    def _run_step(self, step: Callable[[], StepResult]) -> StepResult:
        print_phase_header(self.state.value.replace("-", " ").capitalize())
        result = step()
        self.steps.append(result)
        if not result.ok:
            raise ExternalStepFailure(result.name, result.returncode, result.output)
        return result

    def _drain(self, phase: Phase) -> int:
        pending = self.hooks.pending(phase)
        say_status("hook", f"{phase.value} ({pending} callback{'s' if pending != 1 else ''})")
        return self.hooks.drain(phase)

    def _template_context(self) -> dict[str, Any]:
        return {
            "app_name": self.config.app_name,
            "ruby_version": self.config.ruby_version,
            "time_zone": self.config.time_zone,
        }

    def _save_report(self) -> None:
        """Persist the run report; a missing application directory is skipped."""
        if not self.config.app_path.is_dir():
            return
        path = self.config.state_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.report().model_dump_json(indent=2), encoding="utf-8")
        except OSError as exc:
            print_warning(f"Could not write run report to {path}: {exc}")


def print_report(report: RunReport) -> None:
    """Print the final summary panel."""
    if report.success:
        title = "[bold]Bootstrap Complete[/bold]"
        border_style = "bold green"
        status_text = "[bold green]TEMPLATE APPLIED[/bold green]"
    else:
        title = "[bold]Bootstrap Failed[/bold]"
        border_style = "bold red"
        status_text = "[bold red]TEMPLATE FAILED[/bold red]"

    lines = [
        status_text,
        "",
        f"Application : {report.app_path}",
        f"Duration    : {report.duration}",
        f"Recipes     : {len(report.recipes)}",
        f"Gems        : {', '.join(report.gems) or 'none'}",
        f"Generators  : {', '.join(report.generators) or 'none'}",
        "Callbacks   : "
        + ", ".join(f"{phase}={count}" for phase, count in report.callbacks.items()),
    ]
    if report.error:
        lines.extend(["", f"Last state  : {report.history[-2] if len(report.history) > 1 else '?'}"])

    console.print()
    console.print(
        Panel("\n".join(lines), title=title, border_style=border_style)
    )
