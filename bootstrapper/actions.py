"""File actions available to recipes.

Every action is synchronous and takes effect immediately.  Paths are
resolved relative to the application root; a path that escapes the root, a
missing source file, or an injection anchor that cannot be found raises
:class:`~bootstrapper.errors.FileActionError`.

The Rails-flavoured helpers (``initializer``, ``environment``, ``route``)
write to the same files and with the same indentation as the equivalent
Rails application-template commands.
"""

from __future__ import annotations

import os
import re
import shutil
import textwrap
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateError as JinjaTemplateError

from .errors import FileActionError
from .templates import TemplateRenderer
from .utils import say_status

APPLICATION_SENTINEL = "class Application < Rails::Application\n"
ENVIRONMENT_SENTINEL = "Rails.application.configure do\n"
ROUTES_SENTINEL = "Rails.application.routes.draw do\n"


class FileActions:
    """File-system sink bound to one application root."""

    def __init__(
        self,
        root: str | Path,
        renderer: TemplateRenderer | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.renderer = renderer or TemplateRenderer()
        self.context: dict[str, Any] = dict(context or {})

    # -- Path handling -----------------------------------------------------

    def resolve(self, path: str | Path, action: str = "resolve") -> Path:
        """Resolve *path* under the application root.

        Raises:
            FileActionError: *path* is empty or points outside the root.
        """
        if not str(path).strip():
            raise FileActionError(action, repr(str(path)), "empty path")
        target = (self.root / path).resolve()
        if target != self.root and self.root not in target.parents:
            raise FileActionError(action, str(path), f"outside application root {self.root}")
        return target

    def relative(self, target: Path) -> str:
        return target.relative_to(self.root).as_posix()

    def exists(self, path: str | Path) -> bool:
        return self.resolve(path).exists()

    def read(self, path: str | Path) -> str:
        target = self._existing_file(path, "read")
        return target.read_text(encoding="utf-8")

    # -- Creating ----------------------------------------------------------

    def create_file(self, path: str | Path, content: str = "", *, mode: int | None = None) -> Path:
        """Write *content* to *path*, replacing any existing file."""
        target = self.resolve(path, "create")
        if target.is_dir():
            raise FileActionError("create", str(path), "is a directory")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        if mode is not None:
            target.chmod(mode)
        self._status("create", target)
        return target

    def copy_file(self, source: str, path: str | Path | None = None, *, mode: int | None = None) -> Path:
        """Copy a shipped file to *path* (defaults to the same relative path)."""
        origin = self._source(source, "copy")
        target = self.resolve(path if path is not None else source, "copy")
        if target.is_dir():
            raise FileActionError("copy", str(path), "is a directory")
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(origin, target)
        if mode is not None:
            target.chmod(mode)
        self._status("copy", target)
        return target

    def template(
        self,
        source: str,
        path: str | Path,
        context: dict[str, Any] | None = None,
        *,
        mode: int | None = None,
    ) -> Path:
        """Render the shipped Jinja2 template *source* into *path*."""
        self._source(source, "template")
        target = self.resolve(path, "template")
        if target.is_dir():
            raise FileActionError("template", str(path), "is a directory")
        try:
            content = self.renderer.render(source, {**self.context, **(context or {})})
        except JinjaTemplateError as exc:
            raise FileActionError("template", source, str(exc)) from exc
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
        if mode is not None:
            target.chmod(mode)
        self._status("template", target)
        return target

    def directory(self, source: str, path: str | Path | None = None) -> list[Path]:
        """Copy a shipped directory tree; ``*.j2`` files are rendered."""
        origin = self.renderer.source_path(source)
        if not origin.is_dir():
            raise FileActionError("directory", source, "source directory not found")
        base = path if path is not None else source
        self.resolve(base, "directory").mkdir(parents=True, exist_ok=True)

        written: list[Path] = []
        for item in sorted(origin.rglob("*")):
            if item.is_dir():
                continue
            rel = item.relative_to(origin).as_posix()
            if rel.endswith(".j2"):
                written.append(
                    self.template(f"{source}/{rel}", f"{base}/{rel[: -len('.j2')]}")
                )
            else:
                written.append(self.copy_file(f"{source}/{rel}", f"{base}/{rel}"))
        return written

    def initializer(self, name: str, content: str) -> Path:
        """Create ``config/initializers/<name>``."""
        return self.create_file(f"config/initializers/{name}", _ensure_newline(content))

    # -- Removing / permissions --------------------------------------------

    def remove_file(self, path: str | Path) -> bool:
        """Remove a file or directory.  A missing path is not an error.

        Returns:
            ``True`` if something was removed.
        """
        target = self.resolve(path, "remove")
        if target == self.root:
            raise FileActionError("remove", str(path), "refusing to remove the application root")
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
        else:
            return False
        self._status("remove", target)
        return True

    def chmod(self, path: str | Path, mode: int) -> Path:
        """Set the permission bits of an existing path."""
        target = self.resolve(path, "chmod")
        if not target.exists():
            raise FileActionError("chmod", str(path), "no such file or directory")
        os.chmod(target, mode)
        self._status("chmod", target, f" ({mode:o})")
        return target

    # -- Editing -----------------------------------------------------------

    def inject_into_file(
        self,
        path: str | Path,
        content: str,
        *,
        after: str | None = None,
        before: str | None = None,
    ) -> bool:
        """Insert *content* after/before the first occurrence of an anchor.

        With neither anchor the content is appended.  Content that is already
        present is not inserted twice.

        Returns:
            ``True`` if the file changed.
        """
        if after is not None and before is not None:
            raise ValueError("pass either 'after' or 'before', not both")
        target = self._existing_file(path, "insert")
        text = target.read_text(encoding="utf-8")
        if content in text:
            self._status("skip", target, " (already present)")
            return False

        anchor = after if after is not None else before
        if anchor is None:
            updated = text + content
        else:
            index = text.find(anchor)
            if index < 0:
                raise FileActionError("insert", str(path), f"anchor not found: {anchor!r}")
            if after is not None:
                index += len(anchor)
            updated = text[:index] + content + text[index:]

        target.write_text(updated, encoding="utf-8")
        self._status("insert", target)
        return True

    def gsub_file(
        self,
        path: str | Path,
        pattern: str | re.Pattern[str],
        replacement: str,
        *,
        flags: int = re.MULTILINE,
    ) -> int:
        """Regex-replace every match of *pattern* in *path*.

        Returns:
            The number of replacements made.  No match leaves the file as is.
        """
        target = self._existing_file(path, "gsub")
        regex = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, flags)
        text = target.read_text(encoding="utf-8")
        updated, count = regex.subn(replacement, text)
        if count:
            target.write_text(updated, encoding="utf-8")
            self._status("gsub", target)
        else:
            self._status("skip", target, f" (no match for {regex.pattern!r})")
        return count

    def update_yaml(self, path: str | Path, data: dict[str, Any]) -> Path:
        """Merge *data* into the top-level mapping of a YAML file."""
        target = self._existing_file(path, "update")
        try:
            loaded = yaml.safe_load(target.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise FileActionError("update", str(path), f"invalid YAML: {exc}") from exc
        if not isinstance(loaded, dict):
            raise FileActionError("update", str(path), "top-level YAML value is not a mapping")
        loaded.update(data)
        target.write_text(
            yaml.safe_dump(loaded, sort_keys=False, default_flow_style=False, allow_unicode=True),
            encoding="utf-8",
        )
        self._status("update", target)
        return target

    # -- Rails helpers -----------------------------------------------------

    def environment(self, content: str, env: str | list[str] | None = None) -> None:
        """Add configuration to ``config/application.rb`` or an environment file."""
        if env is None:
            self.inject_into_file(
                "config/application.rb",
                _indent(content, 4),
                after=APPLICATION_SENTINEL,
            )
            return
        for name in [env] if isinstance(env, str) else env:
            self.inject_into_file(
                f"config/environments/{name}.rb",
                _indent(content, 2),
                after=ENVIRONMENT_SENTINEL,
            )

    def route(self, routing_code: str) -> None:
        """Add routing code to the top of ``config/routes.rb``."""
        self.inject_into_file("config/routes.rb", _indent(routing_code, 2), after=ROUTES_SENTINEL)

    # -- Internal ----------------------------------------------------------

    def _source(self, source: str, action: str) -> Path:
        origin = self.renderer.source_path(source)
        if not origin.is_file():
            raise FileActionError(action, source, "source file not found")
        return origin

    def _existing_file(self, path: str | Path, action: str) -> Path:
        target = self.resolve(path, action)
        if not target.is_file():
            raise FileActionError(action, str(path), "no such file")
        return target

    def _status(self, action: str, target: Path, suffix: str = "") -> None:
        say_status(action, self.relative(target) + suffix)


def _indent(content: str, spaces: int) -> str:
    """Strip common indentation, re-indent by *spaces* and end with a newline."""
    return textwrap.indent(_ensure_newline(textwrap.dedent(content)), " " * spaces)


def _ensure_newline(content: str) -> str:
    return content if content.endswith("\n") else content + "\n"
