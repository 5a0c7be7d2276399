"""Active Job queue adapters: Sidekiq in development and production,
the inline test adapter in the test environment."""

from __future__ import annotations

from ..context import RecipeContext

QUEUE_ADAPTERS: dict[str, str] = {
    "development": "sidekiq",
    "production": "sidekiq",
    "test": "test",
}


def apply(ctx: RecipeContext) -> None:
    for env, adapter in QUEUE_ADAPTERS.items():
        ctx.files.environment(f"config.active_job.queue_adapter = :{adapter}", env=env)
