"""Recipe catalogue.

A recipe is a named function that configures one concern of the generated
application through a :class:`~bootstrapper.context.RecipeContext`.  The
catalogue below is the complete, explicit list of available recipes; names
are resolved against it when an orchestrator is built, never looked up
dynamically while the template runs.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..errors import RecipeLoadFailure
from . import (
    action_storage,
    active_job,
    app_config,
    autocorrect,
    base_files,
    database_yml,
    docker,
    pagy,
    readme,
    redis,
    routes,
    rspec,
    rubocop,
    secrets,
    sidekiq,
)

if TYPE_CHECKING:
    from ..context import RecipeContext


@dataclass(frozen=True)
class Recipe:
    """A named configuration unit."""

    name: str
    apply: Callable[["RecipeContext"], None]
    description: str = ""


def _recipe(name: str, module) -> Recipe:
    summary = (module.__doc__ or "").strip().splitlines()
    return Recipe(name=name, apply=module.apply, description=summary[0] if summary else "")


CATALOG: dict[str, Recipe] = {
    recipe.name: recipe
    for recipe in (
        _recipe("base_files", base_files),
        _recipe("docker", docker),
        _recipe("secrets", secrets),
        _recipe("active_job", active_job),
        _recipe("pagy", pagy),
        _recipe("redis", redis),
        _recipe("sidekiq", sidekiq),
        _recipe("rspec", rspec),
        _recipe("rubocop", rubocop),
        _recipe("app_config", app_config),
        _recipe("database_yml", database_yml),
        _recipe("action_storage", action_storage),
        _recipe("routes", routes),
        _recipe("readme", readme),
        _recipe("autocorrect", autocorrect),
    )
}


def resolve(names: Iterable[str | Recipe], catalog: dict[str, Recipe] | None = None) -> list[Recipe]:
    """Map recipe names to :class:`Recipe` objects, preserving order.

    ``Recipe`` instances are passed through unchanged, so callers can mix
    catalogue names with their own recipes.

    Raises:
        RecipeLoadFailure: A name is not in the catalogue, or appears twice.
    """
    catalog = CATALOG if catalog is None else catalog
    resolved: list[Recipe] = []
    seen: set[str] = set()
    for item in names:
        if isinstance(item, Recipe):
            recipe = item
        else:
            recipe = catalog.get(item)
            if recipe is None:
                raise RecipeLoadFailure(item, "no such recipe")
        if recipe.name in seen:
            raise RecipeLoadFailure(recipe.name, "listed more than once")
        seen.add(recipe.name)
        resolved.append(recipe)
    return resolved


__all__ = ["CATALOG", "Recipe", "resolve"]
