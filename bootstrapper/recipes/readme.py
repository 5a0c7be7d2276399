"""Project README with setup instructions."""

from __future__ import annotations

from ..context import RecipeContext


def apply(ctx: RecipeContext) -> None:
    ctx.files.remove_file("README.md")
    ctx.files.template("README.md.j2", "README.md")
