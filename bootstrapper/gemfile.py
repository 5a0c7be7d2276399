"""Gem declarations collected from recipes and written to the Gemfile.

Declaring the same gem twice keeps one entry: the later declaration's
version requirements and group replace the earlier ones (last wins), while
the entry keeps the position of the first declaration.
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from .errors import FileActionError
from .utils import say_status


class GemDeclaration(BaseModel):
    """A single ``gem`` line requested by a recipe."""

    name: str = Field(..., min_length=1)
    requirements: list[str] = Field(default_factory=list)
    group: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _valid_name(cls, value: str) -> str:
        if not re.fullmatch(r"[A-Za-z0-9][A-Za-z0-9._-]*", value):
            raise ValueError(f"invalid gem name: {value!r}")
        return value

    def to_line(self) -> str:
        """Render the declaration as Gemfile source.

        Examples::

            gem "pagy"
            gem "sidekiq", ">= 7.0"
            gem "rspec-rails", group: [:development, :test]
        """
        parts = [f'"{self.name}"', *(f'"{req}"' for req in self.requirements)]
        line = "gem " + ", ".join(parts)
        if len(self.group) == 1:
            line += f", group: :{self.group[0]}"
        elif self.group:
            line += ", group: [" + ", ".join(f":{g}" for g in self.group) + "]"
        return line


class GemfileManifest:
    """Ordered, name-unique collection of :class:`GemDeclaration` objects."""

    def __init__(self) -> None:
        self._gems: dict[str, GemDeclaration] = {}

    def declare(
        self,
        name: str,
        *requirements: str,
        group: str | list[str] | tuple[str, ...] | None = None,
    ) -> GemDeclaration:
        """Record that the application needs gem *name*.

        Re-declaring a gem replaces its requirements and group.
        """
        if group is None:
            groups: list[str] = []
        elif isinstance(group, str):
            groups = [group]
        else:
            groups = list(group)

        declaration = GemDeclaration(name=name, requirements=list(requirements), group=groups)
        self._gems[name] = declaration
        return declaration

    @property
    def declarations(self) -> list[GemDeclaration]:
        return list(self._gems.values())

    def names(self) -> list[str]:
        return list(self._gems)

    def __contains__(self, name: object) -> bool:
        return name in self._gems

    def __len__(self) -> int:
        return len(self._gems)

    # -- Writing -----------------------------------------------------------

    def render(self, existing: str) -> str:
        """Merge the declarations into Gemfile source *existing*.

        A gem already present as a top-level ``gem "name"`` line is rewritten
        in place; other gems are appended at the end.
        """
        content = existing
        appended: list[str] = []
        for declaration in self._gems.values():
            pattern = re.compile(
                rf"""^(?P<indent>[ \t]*)gem[ \t]+["']{re.escape(declaration.name)}["'].*$""",
                re.MULTILINE,
            )
            content, count = pattern.subn(
                lambda m, line=declaration.to_line(): m.group("indent") + line,
                content,
                count=1,
            )
            if count == 0:
                appended.append(declaration.to_line())

        if appended:
            if content and not content.endswith("\n"):
                content += "\n"
            content += "\n" + "\n".join(appended) + "\n"
        return content

    def write(self, gemfile: Path) -> Path:
        """Apply the declarations to the Gemfile at *gemfile*.

        Raises:
            FileActionError: The Gemfile does not exist or cannot be
                read as UTF-8 or written.
        """
        if not gemfile.is_file():
            raise FileActionError("gemfile", str(gemfile), "Gemfile not found")

        try:
            original = gemfile.read_text(encoding="utf-8")
            gemfile.write_text(self.render(original), encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise FileActionError("gemfile", str(gemfile), str(exc)) from exc
        for declaration in self._gems.values():
            say_status("gemfile", declaration.to_line()[len("gem "):])
        return gemfile
