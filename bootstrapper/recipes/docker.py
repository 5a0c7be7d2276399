"""Docker packaging: Dockerfile, Compose files and container binstubs."""

from __future__ import annotations

from ..context import RecipeContext

COMPOSE_FILES: dict[str, str] = {
    "compose.yaml.j2": "compose.yaml",
    "compose.prod.yaml.j2": "compose.prod.yaml",
    "compose.test.yaml.j2": "compose.test.yaml",
}


def apply(ctx: RecipeContext) -> None:
    # rails new generates its own .dockerignore, Dockerfile and entrypoint
    ctx.files.remove_file(".dockerignore")
    ctx.files.copy_file("dockerignore", ".dockerignore")

    for template_name, output_name in COMPOSE_FILES.items():
        ctx.files.template(template_name, output_name)

    ctx.files.remove_file("Dockerfile")
    ctx.files.template("Dockerfile.j2", "Dockerfile")

    ctx.files.remove_file("bin/docker-entrypoint")
    ctx.files.copy_file("docker-entrypoint.sh", "bin/docker-entrypoint", mode=0o755)

    ctx.files.copy_file("bin/jobs", "bin/jobs", mode=0o755)
    ctx.files.copy_file("bin/deploy", "bin/deploy", mode=0o755)
