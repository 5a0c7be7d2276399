"""Rails API bootstrapper -- applies ordered recipes to a Rails skeleton.

Recipes declare gems, write configuration files, and register deferred
callbacks against lifecycle phases.  The orchestrator runs them in a fixed
order, installs dependencies, runs generators, and drains each phase's
callbacks exactly once.

Quick usage::

    from bootstrapper import Config, Orchestrator, TEMPLATE_RECIPES

    config = Config(app_path="my-api", skip_rails_new=True)
    report = Orchestrator(config, TEMPLATE_RECIPES).run()
"""

from bootstrapper.config import Config
from bootstrapper.context import RecipeContext
from bootstrapper.errors import (
    CallbackFailure,
    DuplicatePhaseInvocation,
    ExternalStepFailure,
    FileActionError,
    LifecycleError,
    PhaseOrderViolation,
    RecipeLoadFailure,
    TemplateError,
)
from bootstrapper.hooks import HookRegistry, Phase
from bootstrapper.orchestrator import Orchestrator, OrchestratorState, RunReport
from bootstrapper.recipes import CATALOG, Recipe
from bootstrapper.template import TEMPLATE_RECIPES, apply_template

__all__ = [
    "CATALOG",
    "CallbackFailure",
    "Config",
    "DuplicatePhaseInvocation",
    "ExternalStepFailure",
    "FileActionError",
    "HookRegistry",
    "LifecycleError",
    "Orchestrator",
    "OrchestratorState",
    "Phase",
    "PhaseOrderViolation",
    "Recipe",
    "RecipeContext",
    "RecipeLoadFailure",
    "RunReport",
    "TEMPLATE_RECIPES",
    "TemplateError",
    "apply_template",
]
