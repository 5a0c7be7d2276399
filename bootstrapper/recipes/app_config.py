"""Application-wide settings shared by every environment."""

from __future__ import annotations

from ..context import RecipeContext

HOSTS_CONFIG = """\
# Silence healthcheck logs
config.silence_healthcheck_path = "/up"

# Allow additional hosts from environment variable
# Configure via ALLOWED_HOSTS env var (comma-separated)
# Example: ALLOWED_HOSTS="example.com,test.example.com"
allowed_hosts = ENV.fetch("ALLOWED_HOSTS", "").split(",").map(&:strip).reject(&:empty?)
allowed_hosts.each { |host| config.hosts << host } unless allowed_hosts.empty?
"""


def apply(ctx: RecipeContext) -> None:
    ctx.files.environment(HOSTS_CONFIG)
    ctx.files.environment(f'config.time_zone = "{ctx.config.time_zone}"')
