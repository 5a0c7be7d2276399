"""External steps driven by the orchestrator.

Each step shells out to a Ruby tool and reports a :class:`StepResult`.  The
orchestrator treats a step as an opaque, blocking black box: it only looks
at whether the result is ``ok`` and, if not, surfaces the tool's output
verbatim.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from .config import Config
from .utils import run_command, say_status


class StepResult(BaseModel):
    """Outcome of an external step."""

    name: str
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined diagnostics, stderr last."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


class GeneratorCall(BaseModel):
    """A queued ``rails generate`` invocation."""

    name: str = Field(..., min_length=1)
    args: list[str] = Field(default_factory=list)

    def describe(self) -> str:
        return " ".join([self.name, *self.args])


def rails_executable(config: Config) -> list[str]:
    """Prefer the application's ``bin/rails`` binstub over the global command."""
    binstub = config.app_path / "bin" / "rails"
    if binstub.is_file():
        return ["bin/rails"]
    return [config.rails_command]


class RailsNew:
    """Creates the application skeleton with ``rails new``."""

    name = "rails new"

    def __init__(self, config: Config) -> None:
        self.config = config

    def __call__(self) -> StepResult:
        app_path = self.config.app_path.resolve()
        cmd = [self.config.rails_command, "new", str(app_path), *self.config.rails_new_args]
        say_status("run", " ".join(cmd))
        returncode, stdout, stderr = run_command(
            cmd, cwd=app_path.parent, timeout=self.config.command_timeout
        )
        return StepResult(name=self.name, returncode=returncode, stdout=stdout, stderr=stderr)


class BundleInstaller:
    """Dependency installer: ``bundle install`` in the application root."""

    name = "bundle install"

    def __init__(self, config: Config) -> None:
        self.config = config

    def __call__(self) -> StepResult:
        if self.config.skip_bundle:
            say_status("skip", self.name)
            return StepResult(name=self.name, skipped=True)

        cmd = [self.config.bundle_command, "install"]
        say_status("run", " ".join(cmd))
        returncode, stdout, stderr = run_command(
            cmd, cwd=self.config.app_path, timeout=self.config.command_timeout
        )
        return StepResult(name=self.name, returncode=returncode, stdout=stdout, stderr=stderr)


class GeneratorRunner:
    """Generator runner: executes queued generators in order.

    Stops at the first generator that exits non-zero and returns its result.
    """

    name = "rails generate"

    def __init__(self, config: Config) -> None:
        self.config = config

    def __call__(self, generators: list[GeneratorCall]) -> StepResult:
        if self.config.skip_generators:
            say_status("skip", self.name)
            return StepResult(name=self.name, skipped=True)

        outputs: list[str] = []
        for call in generators:
            cmd = [*rails_executable(self.config), "generate", call.name, *call.args]
            say_status("generate", call.describe())
            returncode, stdout, stderr = run_command(
                cmd, cwd=self.config.app_path, timeout=self.config.command_timeout
            )
            if returncode != 0:
                return StepResult(
                    name=f"{self.name} {call.describe()}",
                    returncode=returncode,
                    stdout=stdout,
                    stderr=stderr,
                )
            if stdout:
                outputs.append(stdout)
        return StepResult(name=self.name, stdout="\n".join(outputs))


def app_exists(app_path: Path) -> bool:
    """Whether *app_path* already looks like a Rails application."""
    return (app_path / "Gemfile").is_file() and (app_path / "config" / "application.rb").is_file()
