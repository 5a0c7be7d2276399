"""Redis connection pools for caching and sessions."""

from __future__ import annotations

from ..context import RecipeContext

REDIS_INITIALIZER = """\
# Connection pools for the cache and session Valkey/Redis instances
redis_pool_size = ENV.fetch("RAILS_MAX_THREADS", 5).to_i + 5

REDIS_CACHE = ConnectionPool.new(size: redis_pool_size, timeout: 5) do
  Redis.new(url: ENV.fetch("REDIS_CACHE_URL", "redis://localhost:6379/1"))
end

REDIS_SESSION = ConnectionPool.new(size: redis_pool_size, timeout: 5) do
  Redis.new(url: ENV.fetch("REDIS_SESSION_URL", "redis://localhost:6379/2"))
end
"""


def apply(ctx: RecipeContext) -> None:
    ctx.gem("redis", ">= 5.0")
    ctx.gem("connection_pool")

    ctx.files.initializer("redis.rb", REDIS_INITIALIZER)
    ctx.files.copy_file("spec/support/redis.rb", "spec/support/redis.rb")
