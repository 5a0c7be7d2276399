"""PostgreSQL database configuration.

Swaps sqlite3 for pg, rewrites ``config/database.yml`` and switches the
schema dump to SQL so PostgreSQL-specific objects survive.
"""

from __future__ import annotations

from ..context import RecipeContext

SQLITE_COMMENT_PATTERN = r"^[ \t]*#.*\bsqlite3\b.*\n"
SQLITE_GEM_PATTERN = r"""^([ \t]*)gem ['"]sqlite3['"].*$"""

DATABASE_YML = """\
default: &default
  adapter: postgresql
  encoding: unicode
  # Connection pool size per worker process
  # Total connections = WEB_CONCURRENCY x RAILS_MAX_THREADS
  pool: <%= ENV.fetch("RAILS_MAX_THREADS", 5) %>
  host: <%= ENV.fetch("POSTGRES_HOST", "localhost") %>
  port: <%= ENV.fetch("POSTGRES_PORT", 5432) %>
  database: <%= ENV.fetch("POSTGRES_DB", "{{ app_name | slugify | snake_case }}_#{Rails.env}") %>
  username: <%= ENV.fetch("POSTGRES_USER", "postgres") %>
  password: <%= ENV.fetch("POSTGRES_PASSWORD", nil) %>

development:
  primary:
    <<: *default

test:
  primary:
    <<: *default

production:
  primary:
    <<: *default
"""


def apply(ctx: RecipeContext) -> None:
    # pg takes the place of the sqlite3 line
    ctx.files.gsub_file("Gemfile", SQLITE_COMMENT_PATTERN, "")
    ctx.files.gsub_file("Gemfile", SQLITE_GEM_PATTERN, r'\1gem "pg"')
    ctx.gem("pg")

    ctx.files.remove_file("config/database.yml")
    ctx.files.create_file(
        "config/database.yml",
        ctx.files.renderer.render_string(DATABASE_YML, ctx.template_context),
    )

    ctx.files.environment("config.active_record.schema_format = :sql")

    @ctx.after_bundle
    def _structure_sql() -> None:
        ctx.files.create_file("db/structure.sql", "-- PostgreSQL database schema\n")
