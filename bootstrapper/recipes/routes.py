"""Health check route and the ``/api`` scope."""

from __future__ import annotations

from ..actions import ROUTES_SENTINEL
from ..context import RecipeContext

HEALTH_ROUTE = 'get "up" => "rails/health#show", as: :health_check'

API_SCOPE = """\
  scope path: "/api", as: "api" do
    # API routes go here
  end

"""


def apply(ctx: RecipeContext) -> None:
    ctx.files.route(HEALTH_ROUTE)
    ctx.files.inject_into_file("config/routes.rb", API_SCOPE, after=ROUTES_SENTINEL)
