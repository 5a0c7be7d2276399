"""RSpec test framework, installed through its Rails generator."""

from __future__ import annotations

from ..context import RecipeContext

TEST_GROUP = ["development", "test"]

SUPPORT_LOADER = """
# Load shared helpers from spec/support
Rails.root.glob("spec/support/**/*.rb").sort.each { |f| require f }
"""


def apply(ctx: RecipeContext) -> None:
    ctx.gem("rspec-rails", "~> 8.0", group=TEST_GROUP)
    ctx.gem("factory_bot_rails", group=TEST_GROUP)

    ctx.generate("rspec:install")

    # spec/rails_helper.rb only exists once rspec:install has run
    @ctx.after_generators
    def _load_support() -> None:
        if not ctx.files.exists("spec/rails_helper.rb"):
            ctx.warn("spec/rails_helper.rb not found; skipping spec/support loader.")
            return
        ctx.files.inject_into_file(
            "spec/rails_helper.rb",
            SUPPORT_LOADER,
            after="require 'rspec/rails'\n",
        )
