"""Active Storage with libvips variants and upload validations.

libvips must be installed on the host; the shipped Dockerfile installs it.
"""

from __future__ import annotations

from ..context import RecipeContext

VARIANT_PROCESSOR = """\
# ActiveStorage variant processor
# :vips - Fast, low memory (recommended, requires libvips)
# :mini_magick - Slower, higher memory (requires ImageMagick)
config.active_storage.variant_processor = :vips
"""


def apply(ctx: RecipeContext) -> None:
    ctx.gem("active_storage_validations")

    @ctx.after_bundle
    def _install() -> None:
        ctx.rails_command("active_storage:install")

    ctx.files.environment(VARIANT_PROCESSOR)
