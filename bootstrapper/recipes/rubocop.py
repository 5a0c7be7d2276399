"""RuboCop with the Rails, RSpec, FactoryBot and Rake extensions.

https://github.com/rubocop/rubocop
"""

from __future__ import annotations

from ..context import RecipeContext

LINT_GROUP = ["development", "test"]


def apply(ctx: RecipeContext) -> None:
    ctx.gem("rubocop", group=LINT_GROUP)
    ctx.gem("rubocop-rails", group=LINT_GROUP)
    ctx.gem("rubocop-rake", "~> 0.6", group=LINT_GROUP)
    ctx.gem("rubocop-rspec", "~> 3.7", group=LINT_GROUP)
    ctx.gem("rubocop-rspec_rails", "~> 2.31", group=LINT_GROUP)
    ctx.gem("rubocop-factory_bot", "~> 2.27", group=LINT_GROUP)

    # Replace the rails-omakase configuration generated by rails new
    ctx.files.remove_file(".rubocop.yml")
    ctx.files.copy_file("rubocop.yml", ".rubocop.yml")
