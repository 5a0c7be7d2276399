"""Docker secrets directory with restrictive permissions.

Compose mounts files from ``.secrets/``.  The directory is owner-only (700)
and secret files are owner read/write, group read (640) so the Docker daemon
group can read them.  Example and placeholder files keep their mode.
"""

from __future__ import annotations

from ..context import RecipeContext

SECRETS_DIR = ".secrets"
DIR_MODE = 0o700
FILE_MODE = 0o640
_KEEP_MODE_SUFFIXES = (".example", ".gitkeep")


def apply(ctx: RecipeContext) -> None:
    ctx.files.directory("secrets", SECRETS_DIR)
    ctx.files.create_file(f"{SECRETS_DIR}/.gitkeep")

    @ctx.after_bundle
    def _restrict_permissions() -> None:
        root = ctx.files.resolve(SECRETS_DIR)
        if not root.is_dir():
            return
        ctx.files.chmod(SECRETS_DIR, DIR_MODE)
        for path in sorted(root.iterdir()):
            if path.name.endswith(_KEEP_MODE_SUFFIXES) or not path.is_file():
                continue
            ctx.files.chmod(f"{SECRETS_DIR}/{path.name}", FILE_MODE)
