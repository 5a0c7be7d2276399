"""Pagy pagination.

https://github.com/ddnexus/pagy
"""

from __future__ import annotations

from ..context import RecipeContext

PAGY_INITIALIZER = """\
require "pagy/extras/overflow"

Pagy::DEFAULT[:items] = 20
Pagy::DEFAULT[:overflow] = :empty_page

# Define min/max items per page for API validation
PAGY_ITEM_MIN = 5
PAGY_ITEM_MAX = 100
"""


def apply(ctx: RecipeContext) -> None:
    ctx.gem("pagy")

    # The initializer requires pagy extras, so the gem must be loadable first
    @ctx.after_generators
    def _initializer() -> None:
        ctx.files.initializer("pagy.rb", PAGY_INITIALIZER)
