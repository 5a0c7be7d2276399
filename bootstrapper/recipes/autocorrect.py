"""Final RuboCop auto-correction pass over the generated project.

Must be the last recipe so its callback runs after every other
post-generator callback has written its files.
"""

from __future__ import annotations

from ..context import RecipeContext


def apply(ctx: RecipeContext) -> None:
    @ctx.after_generators
    def _rubocop() -> None:
        ctx.say("Running RuboCop auto-corrections...")
        ctx.run(
            [ctx.config.bundle_command, "exec", "rubocop", "-A"],
            abort_on_failure=False,
        )
