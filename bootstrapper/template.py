"""Rails API application template.

``TEMPLATE_RECIPES`` lists the recipes in the exact order they load.  This
order is the only dependency mechanism between recipes: a recipe that needs
another's files must come after it, and ``autocorrect`` must stay last so
its post-generator callback runs after all others.

Usage::

    bootstrapper my-api
    bootstrapper ./existing-app --skip-rails-new --skip-recipe docker
    python -m bootstrapper --list-recipes
"""

from __future__ import annotations

import sys
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError
from rich.table import Table

from .config import Config
from .errors import ExternalStepFailure, TemplateError
from .orchestrator import GeneratorStep, Installer, Orchestrator, RunReport, print_report
from .recipes import CATALOG, Recipe
from .steps import RailsNew, app_exists
from .utils import (
    console,
    detect_ruby_version,
    print_error,
    print_phase_header,
    print_success,
    print_warning,
)

TEMPLATE_RECIPES: tuple[str, ...] = (
    # Repository and container files
    "base_files",
    "docker",
    "secrets",
    "active_job",
    # Gems with installation and configuration
    "pagy",
    "redis",
    "sidekiq",
    "rspec",
    "rubocop",
    # Application-wide configuration
    "app_config",
    "database_yml",
    "action_storage",
    "routes",
    "readme",
    # Runs last: formats everything written above
    "autocorrect",
)


def create_skeleton(config: Config) -> None:
    """Run ``rails new`` unless skipped or the application already exists.

    Raises:
        TemplateError: The target exists but ``skip_rails_new`` is not set.
        ExternalStepFailure: ``rails new`` failed.
    """
    if config.skip_rails_new:
        return
    if app_exists(config.app_path):
        raise TemplateError(
            f"{config.app_path} already contains a Rails application; "
            "pass --skip-rails-new to apply the template to it"
        )

    print_phase_header("Creating application skeleton")
    result = RailsNew(config)()
    if not result.ok:
        raise ExternalStepFailure(result.name, result.returncode, result.output)


def apply_template(
    config: Config,
    recipes: Iterable[str | Recipe] = TEMPLATE_RECIPES,
    *,
    installer: Installer | None = None,
    generator_runner: GeneratorStep | None = None,
) -> RunReport:
    """Create the skeleton (if needed) and apply *recipes* to it."""
    create_skeleton(config)
    if not app_exists(config.app_path):
        raise TemplateError(f"No Rails application found at {config.app_path}")

    orchestrator = Orchestrator(
        config, recipes, installer=installer, generator_runner=generator_runner
    )
    try:
        return orchestrator.run()
    finally:
        print_report(orchestrator.report())


def _print_catalog() -> None:
    table = Table(title="Recipes (load order)", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Recipe", no_wrap=True)
    table.add_column("Description")
    for index, name in enumerate(TEMPLATE_RECIPES, start=1):
        table.add_row(str(index), name, CATALOG[name].description)
    console.print(table)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``bootstrapper`` / ``python -m bootstrapper``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="bootstrapper",
        description="Bootstrap a Rails API backend from an ordered list of recipes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  bootstrapper my-api\n"
            "  bootstrapper ./my-api --skip-rails-new --skip-recipe docker\n"
            "  bootstrapper --list-recipes\n"
        ),
    )
    parser.add_argument("app_path", nargs="?", help="Directory of the application to create")
    parser.add_argument(
        "--skip-rails-new",
        action="store_true",
        help="Apply the template to an existing Rails application",
    )
    parser.add_argument("--skip-bundle", action="store_true", help="Do not run bundle install")
    parser.add_argument(
        "--skip-generators", action="store_true", help="Do not run queued generators"
    )
    parser.add_argument(
        "--skip-recipe",
        action="append",
        default=[],
        metavar="NAME",
        help="Leave out a recipe (repeatable)",
    )
    parser.add_argument(
        "--timeout", type=int, default=None, help="Per-command timeout in seconds"
    )
    parser.add_argument(
        "--list-recipes", action="store_true", help="Show the recipes in load order and exit"
    )

    args = parser.parse_args(argv)

    if args.list_recipes:
        _print_catalog()
        return
    if not args.app_path:
        parser.error("app_path is required")

    unknown = [name for name in args.skip_recipe if name not in CATALOG]
    if unknown:
        console.print(f"[bold red]Error:[/bold red] Unknown recipe(s): {', '.join(unknown)}")
        sys.exit(1)

    try:
        config = Config.from_env(
            Path(args.app_path),
            skip_rails_new=args.skip_rails_new or None,
            skip_bundle=args.skip_bundle or None,
            skip_generators=args.skip_generators or None,
            command_timeout=args.timeout,
        )
    except (ValidationError, ValueError) as exc:
        print_error(f"Error: invalid configuration: {exc}")
        sys.exit(1)
    if args.skip_recipe:
        config.skip_recipes = sorted(set(config.skip_recipes) | set(args.skip_recipe))

    detected = detect_ruby_version(config.ruby_command)
    if detected:
        config.ruby_version = detected
    else:
        print_warning(
            f"Could not detect the Ruby version; assuming {config.ruby_version}."
        )

    try:
        apply_template(config)
    except TemplateError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)

    print_success(f"Application ready at {config.app_path.resolve()}")


if __name__ == "__main__":
    main()
