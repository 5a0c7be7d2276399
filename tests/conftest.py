"""Shared pytest fixtures for the bootstrapper test suite.

Provides reusable fixtures for:
- A fake Rails skeleton laid out like ``rails new --api`` output
- A ``Config`` pointing at that skeleton
- Stub external steps (installer, generator runner) that record calls
- A patched command runner so recipes never shell out
"""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from bootstrapper.config import Config
from bootstrapper.steps import GeneratorCall, StepResult


# ---------------------------------------------------------------------------
# Fake Rails skeleton
# ---------------------------------------------------------------------------

SKELETON_FILES: dict[str, str] = {
    "Gemfile": textwrap.dedent("""\
        source "https://rubygems.org"

        gem "rails", "~> 8.0.2"
        # Use sqlite3 as the database for Active Record
        gem "sqlite3", ">= 2.1"
        gem "puma", ">= 5.0"
        gem "bootsnap", require: false

        group :development, :test do
          gem "debug", platforms: %i[ mri windows ], require: "debug/prelude"
        end
    """),
    "config/application.rb": textwrap.dedent("""\
        require_relative "boot"

        require "rails/all"

        Bundler.require(*Rails.groups)

        module MyApi
          class Application < Rails::Application
            config.load_defaults 8.0
            config.api_only = true
          end
        end
    """),
    "config/environments/development.rb": textwrap.dedent("""\
        require "active_support/core_ext/integer/time"

        Rails.application.configure do
          config.enable_reloading = true
        end
    """),
    "config/environments/test.rb": textwrap.dedent("""\
        Rails.application.configure do
          config.enable_reloading = false
        end
    """),
    "config/environments/production.rb": textwrap.dedent("""\
        Rails.application.configure do
          config.enable_reloading = false
        end
    """),
    "config/routes.rb": textwrap.dedent("""\
        Rails.application.routes.draw do
          get "up" => "rails/health#show", as: :rails_health_check
        end
    """),
    "config/database.yml": "default: &default\n  adapter: sqlite3\n",
    "README.md": "# README\n",
    ".ruby-version": "3.4.1\n",
    ".gitignore": "/.bundle\n",
    ".dockerignore": "/.git\n",
    ".rubocop.yml": "inherit_gem: { rubocop-rails-omakase: rubocop.yml }\n",
    "Dockerfile": "FROM ruby\n",
    "bin/docker-entrypoint": "#!/bin/bash\n",
}


def build_skeleton(root: Path) -> Path:
    """Write :data:`SKELETON_FILES` under *root* and return it."""
    for rel, content in SKELETON_FILES.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def rails_app(tmp_path: Path) -> Path:
    """A fake Rails API skeleton in ``<tmp>/my-api``."""
    return build_skeleton(tmp_path / "my-api")


@pytest.fixture
def config(rails_app: Path) -> Config:
    """Config for applying the template to :func:`rails_app`."""
    return Config(app_path=rails_app, skip_rails_new=True, ruby_version="3.4.1")


# ---------------------------------------------------------------------------
# Stub external steps
# ---------------------------------------------------------------------------


class RecordingInstaller:
    """Installer stub: records calls and returns a fixed result."""

    def __init__(self, returncode: int = 0, stderr: str = "") -> None:
        self.calls = 0
        self.returncode = returncode
        self.stderr = stderr

    def __call__(self) -> StepResult:
        self.calls += 1
        return StepResult(name="bundle install", returncode=self.returncode, stderr=self.stderr)


class RecordingGeneratorRunner:
    """Generator runner stub: records the generators it was handed."""

    def __init__(self, returncode: int = 0, stderr: str = "") -> None:
        self.calls: list[list[GeneratorCall]] = []
        self.returncode = returncode
        self.stderr = stderr

    def __call__(self, generators: list[GeneratorCall]) -> StepResult:
        self.calls.append(list(generators))
        return StepResult(name="rails generate", returncode=self.returncode, stderr=self.stderr)


@pytest.fixture
def installer() -> RecordingInstaller:
    return RecordingInstaller()


@pytest.fixture
def generator_runner() -> RecordingGeneratorRunner:
    return RecordingGeneratorRunner()


@pytest.fixture
def fake_commands() -> Any:
    """Patch the command runner used by recipe contexts.

    Yields the mock; every command "succeeds" with empty output.
    """
    with patch("bootstrapper.context.run_command", return_value=(0, "", "")) as mock_run:
        yield mock_run
