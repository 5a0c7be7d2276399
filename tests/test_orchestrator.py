"""Unit tests for the template orchestrator (bootstrapper.orchestrator).

Tests cover:
- Happy-path state sequence and run report
- Recipes execute sequentially in the given order
- Gem declarations reach the Gemfile before dependencies install
- Callbacks from earlier phases run before later phases
- Recipe failures stop the run before any phase drains
- Installer / generator failures surface the tool output
- Callback failures stop later steps and phases
- run() only once, skip_recipes (including unknown names), report persistence
"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from bootstrapper.config import Config
from bootstrapper.errors import (
    CallbackFailure,
    DuplicatePhaseInvocation,
    ExternalStepFailure,
    FileActionError,
    RecipeLoadFailure,
)
from bootstrapper.hooks import Phase
from bootstrapper.orchestrator import Orchestrator, OrchestratorState, RunReport, print_report
from bootstrapper.recipes import Recipe
from bootstrapper.steps import StepResult


pytestmark = pytest.mark.unit

HAPPY_PATH = [
    "not-started",
    "loading-recipes",
    "dependencies-installing",
    "dependencies-installed",
    "generators-running",
    "generators-complete",
    "done",
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _orchestrator(config, recipes, installer, generator_runner) -> Orchestrator:
    return Orchestrator(config, recipes, installer=installer, generator_runner=generator_runner)


def _recorder(events: list[str], label: str):
    def callback() -> None:
        events.append(label)

    return callback


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


class TestHappyPath:
    def test_empty_recipe_list(self, config, installer, generator_runner):
        orchestrator = _orchestrator(config, [], installer, generator_runner)
        report = orchestrator.run()

        assert report.success
        assert report.history == HAPPY_PATH
        assert orchestrator.state is OrchestratorState.DONE
        assert installer.calls == 1
        assert generator_runner.calls == [[]]

    def test_recipes_run_in_order(self, config, installer, generator_runner):
        events: list[str] = []
        recipes = [
            Recipe(name=name, apply=lambda ctx, name=name: events.append(name))
            for name in ("first", "second", "third")
        ]

        report = _orchestrator(config, recipes, installer, generator_runner).run()

        assert events == ["first", "second", "third"]
        assert report.recipes == ["first", "second", "third"]

    def test_phase_ordering_across_recipes(self, config, rails_app, generator_runner):
        events: list[str] = []

        def installer() -> StepResult:
            events.append("install")
            return StepResult(name="bundle install")

        def generators(calls) -> StepResult:
            events.append("generate")
            return StepResult(name="rails generate")

        def recipe_a(ctx) -> None:
            events.append("load a")
            ctx.after_generators(_recorder(events, "a generators"))
            ctx.after_bundle(_recorder(events, "a bundle"))

        def recipe_b(ctx) -> None:
            events.append("load b")
            ctx.after_bundle(_recorder(events, "b bundle"))
            ctx.after_generators(_recorder(events, "b generators"))

        recipes = [Recipe("a", recipe_a), Recipe("b", recipe_b)]
        Orchestrator(config, recipes, installer=installer, generator_runner=generators).run()

        assert events == [
            "load a",
            "load b",
            "install",
            "a bundle",
            "b bundle",
            "generate",
            "a generators",
            "b generators",
        ]

    def test_dependent_file_written_before_reader(self, config, rails_app, installer, generator_runner):
        """A file written after dependencies install exists when a
        post-generator callback from a later recipe reads it."""
        seen: dict[str, str] = {}

        def writer(ctx) -> None:
            @ctx.after_bundle
            def _write() -> None:
                ctx.files.create_file("config/x.yml", "written: true\n")

        def reader(ctx) -> None:
            @ctx.after_generators
            def _read() -> None:
                seen["x"] = ctx.files.read("config/x.yml")
                ctx.files.create_file("config/y.yml", seen["x"])

        recipes = [Recipe("writer", writer), Recipe("reader", reader)]
        _orchestrator(config, recipes, installer, generator_runner).run()

        assert seen["x"] == "written: true\n"
        assert (rails_app / "config" / "y.yml").read_text() == "written: true\n"

    def test_callback_may_register_later_phase(self, config, installer, generator_runner):
        events: list[str] = []

        def recipe(ctx) -> None:
            @ctx.after_bundle
            def _outer() -> None:
                events.append("bundle")
                ctx.after_generators(_recorder(events, "nested"))

        report = _orchestrator(config, [Recipe("r", recipe)], installer, generator_runner).run()

        assert events == ["bundle", "nested"]
        assert report.callbacks == {
            "immediate": 0,
            "post-dependency-install": 1,
            "post-generator-run": 1,
        }

    def test_immediate_callbacks_run_during_load(self, config, installer, generator_runner):
        events: list[str] = []

        def recipe(ctx) -> None:
            ctx.register(Phase.IMMEDIATE, _recorder(events, "immediate"))
            events.append("after register")

        report = _orchestrator(config, [Recipe("r", recipe)], installer, generator_runner).run()

        assert events == ["immediate", "after register"]
        assert report.callbacks["immediate"] == 1

    def test_generators_handed_to_runner(self, config, installer, generator_runner):
        def recipe(ctx) -> None:
            ctx.generate("rspec:install")
            ctx.generate("model", "User")

        report = _orchestrator(config, [Recipe("r", recipe)], installer, generator_runner).run()

        assert [[g.describe() for g in batch] for batch in generator_runner.calls] == [
            ["rspec:install", "model User"]
        ]
        assert report.generators == ["rspec:install", "model User"]


# ---------------------------------------------------------------------------
# Gemfile
# ---------------------------------------------------------------------------


class TestGemfile:
    def test_written_before_install(self, config, rails_app, generator_runner):
        seen: list[str] = []

        def installer() -> StepResult:
            seen.append((rails_app / "Gemfile").read_text())
            return StepResult(name="bundle install")

        def recipe(ctx) -> None:
            ctx.gem("pagy")
            ctx.gem("pagy")
            ctx.gem("sidekiq", ">= 7.0")

        report = Orchestrator(
            config, [Recipe("r", recipe)], installer=installer, generator_runner=generator_runner
        ).run()

        assert seen[0].count('gem "pagy"') == 1
        assert 'gem "sidekiq", ">= 7.0"' in seen[0]
        assert report.gems == ["pagy", "sidekiq"]

    def test_untouched_without_gems(self, config, rails_app, installer, generator_runner):
        before = (rails_app / "Gemfile").read_text()
        _orchestrator(config, [], installer, generator_runner).run()
        assert (rails_app / "Gemfile").read_text() == before

    def test_missing_gemfile_fails(self, config, rails_app, installer, generator_runner):
        (rails_app / "Gemfile").unlink()
        recipe = Recipe("r", lambda ctx: ctx.gem("pg"))
        orchestrator = _orchestrator(config, [recipe], installer, generator_runner)

        with pytest.raises(FileActionError):
            orchestrator.run()
        assert installer.calls == 0
        assert orchestrator.state is OrchestratorState.FAILED

    def test_undecodable_gemfile_fails_as_template_error(
        self, config, rails_app, installer, generator_runner
    ):
        (rails_app / "Gemfile").write_bytes(b"# caf\xe9\n")
        recipe = Recipe("r", lambda ctx: ctx.gem("pg"))
        orchestrator = _orchestrator(config, [recipe], installer, generator_runner)

        with pytest.raises(FileActionError, match="Gemfile"):
            orchestrator.run()
        assert installer.calls == 0
        assert orchestrator.state is OrchestratorState.FAILED


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


class TestRecipeFailure:
    def test_stops_later_recipes_and_phases(self, config, installer, generator_runner):
        events: list[str] = []

        def good(ctx) -> None:
            events.append("good")
            ctx.after_bundle(_recorder(events, "bundle callback"))

        def bad(ctx) -> None:
            raise KeyError("missing_setting")

        def never(ctx) -> None:
            events.append("never")

        recipes = [Recipe("good", good), Recipe("bad", bad), Recipe("never", never)]
        orchestrator = _orchestrator(config, recipes, installer, generator_runner)

        with pytest.raises(RecipeLoadFailure) as exc_info:
            orchestrator.run()

        assert exc_info.value.recipe == "bad"
        assert isinstance(exc_info.value.__cause__, KeyError)
        assert events == ["good"]
        assert installer.calls == 0
        assert generator_runner.calls == []
        assert orchestrator.state is OrchestratorState.FAILED
        assert orchestrator.history[-2:] == [
            OrchestratorState.LOADING_RECIPES,
            OrchestratorState.FAILED,
        ]

    def test_unknown_recipe_rejected_at_construction(self, config, installer, generator_runner):
        with pytest.raises(RecipeLoadFailure, match="no such recipe"):
            _orchestrator(config, ["pagy", "nonexistent"], installer, generator_runner)
        assert installer.calls == 0


class TestStepFailure:
    def test_installer_failure_surfaces_output(self, config, installer, generator_runner):
        events: list[str] = []
        installer.returncode = 7
        installer.stderr = "Could not find gem 'nope' in rubygems repository"

        def recipe(ctx) -> None:
            ctx.after_bundle(_recorder(events, "bundle"))
            ctx.after_generators(_recorder(events, "generators"))

        orchestrator = _orchestrator(config, [Recipe("r", recipe)], installer, generator_runner)

        with pytest.raises(ExternalStepFailure) as exc_info:
            orchestrator.run()

        err = exc_info.value
        assert err.returncode == 7
        assert "Could not find gem 'nope'" in str(err)
        assert events == []
        assert generator_runner.calls == []
        assert orchestrator.history[-2:] == [
            OrchestratorState.DEPENDENCIES_INSTALLING,
            OrchestratorState.FAILED,
        ]

    def test_generator_failure_skips_post_generator_callbacks(
        self, config, installer, generator_runner
    ):
        events: list[str] = []
        generator_runner.returncode = 1
        generator_runner.stderr = "Could not find generator 'rspec:install'"

        def recipe(ctx) -> None:
            ctx.after_bundle(_recorder(events, "bundle"))
            ctx.after_generators(_recorder(events, "generators"))

        orchestrator = _orchestrator(config, [Recipe("r", recipe)], installer, generator_runner)

        with pytest.raises(ExternalStepFailure, match="rspec:install"):
            orchestrator.run()

        assert events == ["bundle"]
        assert orchestrator.state is OrchestratorState.FAILED
        assert orchestrator.hooks.pending(Phase.POST_GENERATOR_RUN) == 1


class TestCallbackFailure:
    def test_post_install_failure_stops_generators(self, config, installer, generator_runner):
        events: list[str] = []

        def boom() -> None:
            raise OSError("disk full")

        def recipe(ctx) -> None:
            ctx.after_bundle(boom)
            ctx.after_bundle(_recorder(events, "second bundle"))
            ctx.after_generators(_recorder(events, "generators"))

        orchestrator = _orchestrator(config, [Recipe("r", recipe)], installer, generator_runner)

        with pytest.raises(CallbackFailure) as exc_info:
            orchestrator.run()

        assert exc_info.value.source == "r"
        assert isinstance(exc_info.value.__cause__, OSError)
        assert events == []
        assert generator_runner.calls == []
        assert orchestrator.history[-2:] == [
            OrchestratorState.DEPENDENCIES_INSTALLED,
            OrchestratorState.FAILED,
        ]


# ---------------------------------------------------------------------------
# Run-once, skipping, reporting
# ---------------------------------------------------------------------------


class TestLifecycle:
    def test_run_twice_rejected(self, config, installer, generator_runner):
        orchestrator = _orchestrator(config, [], installer, generator_runner)
        orchestrator.run()
        with pytest.raises(DuplicatePhaseInvocation):
            orchestrator.run()
        assert installer.calls == 1

    def test_run_after_failure_rejected(self, config, installer, generator_runner):
        installer.returncode = 1
        orchestrator = _orchestrator(config, [], installer, generator_runner)
        with pytest.raises(ExternalStepFailure):
            orchestrator.run()
        with pytest.raises(DuplicatePhaseInvocation):
            orchestrator.run()

    def test_skip_recipes(self, config, installer, generator_runner):
        events: list[str] = []
        config.skip_recipes = ["second"]
        recipes = [
            Recipe(name=name, apply=lambda ctx, name=name: events.append(name))
            for name in ("first", "second", "third")
        ]

        report = _orchestrator(config, recipes, installer, generator_runner).run()

        assert events == ["first", "third"]
        assert report.recipes == ["first", "third"]

    def test_skip_unknown_recipe_rejected(self, config, installer, generator_runner):
        config.skip_recipes = ["dockr"]
        recipes = [Recipe(name="docker", apply=lambda ctx: None)]

        with pytest.raises(RecipeLoadFailure, match="dockr") as exc_info:
            _orchestrator(config, recipes, installer, generator_runner)

        assert exc_info.value.recipe == "dockr"
        assert installer.calls == 0

    def test_skip_catalog_recipe_outside_list_rejected(self, config):
        config.skip_recipes = ["docker"]
        with pytest.raises(RecipeLoadFailure, match="not in the list"):
            Orchestrator(config, ["readme"])

    def test_template_context(self, config):
        orchestrator = Orchestrator(config, [])
        assert orchestrator.context.template_context == {
            "app_name": "my-api",
            "ruby_version": "3.4.1",
            "time_zone": "UTC",
        }


class TestReport:
    def test_saved_after_success(self, config, installer, generator_runner):
        _orchestrator(config, [], installer, generator_runner).run()

        data = json.loads(config.state_path.read_text())
        assert data["state"] == "done"
        assert data["history"] == HAPPY_PATH
        assert data["steps"][0]["name"] == "bundle install"
        assert data["error"] is None
        assert data["duration"]

    def test_saved_after_failure(self, config, installer, generator_runner):
        def bad(ctx) -> None:
            raise RuntimeError("recipe exploded")

        with pytest.raises(RecipeLoadFailure):
            _orchestrator(config, [Recipe("bad", bad)], installer, generator_runner).run()

        report = RunReport.model_validate_json(config.state_path.read_text())
        assert report.state == "failed"
        assert not report.success
        assert "recipe exploded" in report.error

    def test_not_saved_without_app_directory(self, tmp_path, installer, generator_runner):
        config = Config(app_path=tmp_path / "missing", skip_rails_new=True)
        _orchestrator(config, [], installer, generator_runner).run()
        assert not Path(tmp_path / "missing").exists()

    def test_print_report(self, config, installer, generator_runner):
        report = _orchestrator(config, [], installer, generator_runner).run()
        with patch("bootstrapper.orchestrator.console") as mock_console:
            print_report(report)
        panel = mock_console.print.call_args.args[0]
        assert "TEMPLATE APPLIED" in str(panel.renderable)
        assert "Bootstrap Complete" in str(panel.title)

    def test_print_failed_report(self):
        report = RunReport(
            app_path="/tmp/app",
            state="failed",
            history=["not-started", "loading-recipes", "failed"],
            error="boom",
        )
        with patch("bootstrapper.orchestrator.console") as mock_console:
            print_report(report)
        panel = mock_console.print.call_args.args[0]
        text = str(panel.renderable)
        assert "TEMPLATE FAILED" in text
        assert "loading-recipes" in text
        assert "Bootstrap Failed" in str(panel.title)
        assert "Complete" not in str(panel.title)
