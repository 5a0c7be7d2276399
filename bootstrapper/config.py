"""Bootstrapper configuration.

Typed settings for one template run.  All settings use Pydantic v2 models so
they are validated at construction time and can be serialised to/from JSON or
read from environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

DEFAULT_RAILS_NEW_ARGS: list[str] = ["--api", "--skip-bundle", "--skip-test"]


class Config(BaseModel):
    """Settings for applying the template to a single application.

    Instances are typically created once by the CLI entry point and then
    passed to the ``Orchestrator`` and every recipe through its context.
    """

    app_path: Path = Field(..., description="Root directory of the Rails application")

    rails_command: str = Field(default="rails")
    bundle_command: str = Field(default="bundle")
    ruby_command: str = Field(default="ruby")
    rails_new_args: list[str] = Field(default_factory=lambda: list(DEFAULT_RAILS_NEW_ARGS))

    skip_rails_new: bool = Field(default=False, description="Apply to an existing skeleton")
    skip_bundle: bool = Field(default=False, description="Do not run bundle install")
    skip_generators: bool = Field(default=False, description="Do not run queued generators")
    skip_recipes: list[str] = Field(default_factory=list)

    min_ruby_version: str = Field(default="3.4.0")
    ruby_version: str = Field(default="3.4.0", description="Ruby version written to mise.toml")
    command_timeout: int | None = Field(
        default=None, ge=1, description="Per-command timeout in seconds (None waits forever)"
    )
    time_zone: str = Field(default="UTC")

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def app_name(self) -> str:
        """Application name, taken from the target directory."""
        return self.app_path.resolve().name

    @property
    def gemfile_path(self) -> Path:
        return self.app_path / "Gemfile"

    @property
    def state_path(self) -> Path:
        """Where the run report is written after a run."""
        return self.app_path / "tmp" / "bootstrapper-run.json"

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file.  Defaults to ``<app_path>/tmp/bootstrapper.json``.

        Returns:
            The path where the file was written.
        """
        target = path or (self.app_path / "tmp" / "bootstrapper.json")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls, app_path: str | Path, **overrides: Any) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            BOOTSTRAP_RAILS, BOOTSTRAP_BUNDLE, BOOTSTRAP_RUBY,
            BOOTSTRAP_RAILS_NEW_ARGS, BOOTSTRAP_SKIP_BUNDLE,
            BOOTSTRAP_SKIP_GENERATORS, BOOTSTRAP_SKIP_RECIPES,
            BOOTSTRAP_COMMAND_TIMEOUT, BOOTSTRAP_TIME_ZONE.

        Keyword *overrides* win over the environment.
        """
        kwargs: dict[str, Any] = {"app_path": Path(app_path)}
        if os.environ.get("BOOTSTRAP_RAILS"):
            kwargs["rails_command"] = os.environ["BOOTSTRAP_RAILS"]
        if os.environ.get("BOOTSTRAP_BUNDLE"):
            kwargs["bundle_command"] = os.environ["BOOTSTRAP_BUNDLE"]
        if os.environ.get("BOOTSTRAP_RUBY"):
            kwargs["ruby_command"] = os.environ["BOOTSTRAP_RUBY"]
        if os.environ.get("BOOTSTRAP_RAILS_NEW_ARGS"):
            kwargs["rails_new_args"] = os.environ["BOOTSTRAP_RAILS_NEW_ARGS"].split()
        if os.environ.get("BOOTSTRAP_SKIP_BUNDLE"):
            kwargs["skip_bundle"] = _env_flag(os.environ["BOOTSTRAP_SKIP_BUNDLE"])
        if os.environ.get("BOOTSTRAP_SKIP_GENERATORS"):
            kwargs["skip_generators"] = _env_flag(os.environ["BOOTSTRAP_SKIP_GENERATORS"])
        if os.environ.get("BOOTSTRAP_SKIP_RECIPES"):
            kwargs["skip_recipes"] = [
                name.strip()
                for name in os.environ["BOOTSTRAP_SKIP_RECIPES"].split(",")
                if name.strip()
            ]
        if os.environ.get("BOOTSTRAP_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = int(os.environ["BOOTSTRAP_COMMAND_TIMEOUT"])
        if os.environ.get("BOOTSTRAP_TIME_ZONE"):
            kwargs["time_zone"] = os.environ["BOOTSTRAP_TIME_ZONE"]

        kwargs.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**kwargs)


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")
