"""Sidekiq background jobs backed by a dedicated Valkey queue instance."""

from __future__ import annotations

from ..context import RecipeContext

SIDEKIQ_YML = """\
# Sidekiq Configuration
# See: https://github.com/sidekiq/sidekiq/wiki/Advanced-Options

# Global configuration
:max_retries: 5
:timeout: 30

# Queues with priorities (higher number = higher priority)
:queues:
  - [critical, 10]
  - [default, 5]
  - [low, 1]

# Production settings (override in production environment)
production:
  :concurrency: <%= ENV.fetch("APP_SIDEKIQ_CONCURRENCY", 10) %>

# Development settings
development:
  :concurrency: <%= ENV.fetch("APP_SIDEKIQ_CONCURRENCY", 2) %>

# Test settings (test environment uses :test adapter)
test:
  :concurrency: 1
"""

SIDEKIQ_INITIALIZER = """\
# Sidekiq Initializer
# Configure Sidekiq to use dedicated Valkey queue instance

# Test environment uses the :test adapter (config/environments/test.rb)
return if Rails.env.test?

Rails.application.config.after_initialize do
  # noeviction policy and AOF persistence keep jobs across Valkey restarts
  redis_config = {
    url:             ENV.fetch("REDIS_QUEUE_URL", "redis://localhost:6379/0"),
    password:        ENV.fetch("REDIS_QUEUE_PASSWORD", nil),
    network_timeout: 5,
    pool_timeout:    5
  }

  Sidekiq.configure_server do |config|
    # Pool size must be >= concurrency + 2 for internal threads
    config.redis = redis_config.merge(
      size: ENV.fetch("APP_SIDEKIQ_CONCURRENCY", 10).to_i + 5
    )

    config.average_scheduled_poll_interval = 15

    config.error_handlers << lambda { |exception, context|
      Rails.logger.error("Sidekiq error: #{exception.class} - #{exception.message}")
      Rails.logger.error(exception.backtrace.join("\\n"))

      Sentry.capture_exception(exception, extra: context) if defined?(Sentry)
    }
  end

  Sidekiq.configure_client do |config|
    config.redis = redis_config.merge(
      size: ENV.fetch("RAILS_MAX_THREADS", 5).to_i + 5
    )
  end
end
"""


def apply(ctx: RecipeContext) -> None:
    ctx.gem("sidekiq", ">= 7.0")

    @ctx.after_bundle
    def _config() -> None:
        ctx.files.create_file("config/sidekiq.yml", SIDEKIQ_YML)

    ctx.files.initializer("sidekiq.rb", SIDEKIQ_INITIALIZER)
