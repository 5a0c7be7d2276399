"""Repository housekeeping files.

Replaces ``.ruby-version`` with a ``mise.toml`` and installs the project's
``.gitignore``, ``.gitattributes`` and ``.env.example``.
"""

from __future__ import annotations

from ..context import RecipeContext
from ..utils import version_at_least


def apply(ctx: RecipeContext) -> None:
    ruby_version = ctx.config.ruby_version
    minimum = ctx.config.min_ruby_version
    if not version_at_least(ruby_version, minimum):
        ctx.warn(f"This template is optimized for Ruby {minimum}+")
        ctx.warn(f"   Current Ruby version: {ruby_version}")
        ctx.warn(f"   Please consider upgrading to Ruby {minimum} or later")

    # mise manages the Ruby version instead of .ruby-version
    ctx.files.remove_file(".ruby-version")
    ctx.files.template("mise.toml.j2", "mise.toml")

    ctx.files.remove_file(".gitignore")
    ctx.files.copy_file("gitignore", ".gitignore")
    ctx.files.copy_file("gitattributes", ".gitattributes")
    ctx.files.copy_file("env.example", ".env.example")
