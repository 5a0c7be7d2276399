"""Capabilities handed to a recipe while it executes.

A recipe receives a :class:`RecipeContext` and may only touch the outside
world through it: declare gems, mutate files, queue generators, and
register deferred callbacks.  ``after_bundle`` and ``after_generators``
return the callback unchanged so they can be used as decorators::

    def apply(ctx: RecipeContext) -> None:
        ctx.gem("pagy")

        @ctx.after_generators
        def _initializer() -> None:
            ctx.files.initializer("pagy.rb", PAGY_INITIALIZER)
"""

from __future__ import annotations

from typing import Any

from .actions import FileActions
from .config import Config
from .errors import ExternalStepFailure
from .gemfile import GemDeclaration, GemfileManifest
from .hooks import Callback, HookRegistry, Phase
from .steps import GeneratorCall, rails_executable
from .utils import console, print_warning, run_command, say_status


class RecipeContext:
    """Per-recipe view over the state shared by one orchestration run."""

    def __init__(
        self,
        config: Config,
        files: FileActions,
        gems: GemfileManifest,
        hooks: HookRegistry,
        generators: list[GeneratorCall],
        recipe: str | None = None,
    ) -> None:
        self.config = config
        self.files = files
        self.gems = gems
        self.hooks = hooks
        self.generators = generators
        self.recipe = recipe

    def for_recipe(self, name: str) -> "RecipeContext":
        """Same shared state, with callbacks attributed to recipe *name*."""
        return RecipeContext(
            self.config, self.files, self.gems, self.hooks, self.generators, recipe=name
        )

    @property
    def template_context(self) -> dict[str, Any]:
        return self.files.context

    # -- Dependencies ------------------------------------------------------

    def gem(
        self,
        name: str,
        *requirements: str,
        group: str | list[str] | tuple[str, ...] | None = None,
    ) -> GemDeclaration:
        """Declare a gem; declaring it again replaces the earlier entry."""
        return self.gems.declare(name, *requirements, group=group)

    # -- Deferred work -----------------------------------------------------

    def register(self, phase: Phase, callback: Callback) -> Callback:
        self.hooks.register(phase, callback, source=self.recipe)
        return callback

    def after_bundle(self, callback: Callback) -> Callback:
        """Run *callback* once dependencies are installed."""
        return self.register(Phase.POST_DEPENDENCY_INSTALL, callback)

    def after_generators(self, callback: Callback) -> Callback:
        """Run *callback* once every queued generator has run."""
        return self.register(Phase.POST_GENERATOR_RUN, callback)

    def generate(self, name: str, *args: str) -> GeneratorCall:
        """Queue ``rails generate <name> <args>`` for the generator step."""
        call = GeneratorCall(name=name, args=list(args))
        self.generators.append(call)
        return call

    # -- Commands ----------------------------------------------------------

    def run(self, command: str | list[str], *, abort_on_failure: bool = True) -> str:
        """Run *command* in the application root and return its stdout.

        Raises:
            ExternalStepFailure: The command exited non-zero and
                *abort_on_failure* is set.  Otherwise a warning is printed.
        """
        shown = command if isinstance(command, str) else " ".join(command)
        say_status("run", shown)
        returncode, stdout, stderr = run_command(
            command, cwd=self.config.app_path, timeout=self.config.command_timeout
        )
        if returncode != 0:
            output = "\n".join(part for part in (stdout, stderr) if part)
            if abort_on_failure:
                raise ExternalStepFailure(shown, returncode, output)
            print_warning(f"'{shown}' exited with code {returncode}; continuing.")
        return stdout

    def rails_command(self, task: str) -> str:
        """Run a Rails command such as ``active_storage:install``."""
        return self.run([*rails_executable(self.config), *task.split()])

    # -- Output ------------------------------------------------------------

    def say(self, message: str) -> None:
        console.print(message)

    def warn(self, message: str) -> None:
        print_warning(message)
