"""Shared utility functions for the bootstrapper.

Provides blocking command execution, Ruby version helpers, duration
formatting, and Rich-based console reporting.
"""

from __future__ import annotations

import os
import re
import subprocess
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule

console = Console()

# ---------------------------------------------------------------------------
# Command execution
# ---------------------------------------------------------------------------


def run_command(
    cmd: str | list[str],
    cwd: str | Path | None = None,
    timeout: int | None = None,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command and wait for it to finish.

    Args:
        cmd: Shell command string or list of arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
            ``None`` waits indefinitely.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  A timeout is reported as
        return code ``-1`` with an explanatory stderr; a missing executable as
        ``127``.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    shown = cmd if isinstance(cmd, str) else " ".join(cmd)
    try:
        completed = subprocess.run(
            cmd,
            shell=isinstance(cmd, str),
            cwd=str(cwd) if cwd else None,
            env=merged_env,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        return (-1, "", f"Command timed out after {timeout}s: {shown}")
    except FileNotFoundError as exc:
        return (127, "", f"Command not found: {exc.filename or shown}")

    return (completed.returncode, completed.stdout.strip(), completed.stderr.strip())


# ---------------------------------------------------------------------------
# Ruby helpers
# ---------------------------------------------------------------------------


def parse_version(version: str) -> tuple[int, ...]:
    """Turn ``"3.4.1"`` into ``(3, 4, 1)``; non-numeric parts are ignored.

    Examples::

        parse_version("3.4.0")         -> (3, 4, 0)
        parse_version("3.3.6-preview") -> (3, 3, 6)
    """
    parts: list[int] = []
    for piece in version.strip().split("."):
        match = re.match(r"\d+", piece)
        if not match:
            break
        parts.append(int(match.group(0)))
    return tuple(parts)


def version_at_least(version: str, minimum: str) -> bool:
    """Return ``True`` when *version* >= *minimum* (dotted numeric compare)."""
    have = parse_version(version)
    want = parse_version(minimum)
    width = max(len(have), len(want))
    return have + (0,) * (width - len(have)) >= want + (0,) * (width - len(want))


def detect_ruby_version(ruby_command: str = "ruby", timeout: int | None = 30) -> str | None:
    """Ask the local interpreter for ``RUBY_VERSION``.

    Returns ``None`` when Ruby is not installed or does not answer.
    """
    returncode, stdout, _ = run_command(
        [ruby_command, "-e", "print RUBY_VERSION"], timeout=timeout
    )
    if returncode != 0 or not stdout:
        return None
    return stdout.strip()


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
        format_duration(3661.0) -> "1h 1m 1s"
    """
    if seconds < 0:
        return "0.0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if hours > 0 or minutes > 0:
        parts.append(f"{int(secs)}s")
    else:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------

STATUS_COLORS: dict[str, str] = {
    "create": "green",
    "copy": "green",
    "template": "green",
    "chmod": "green",
    "gemfile": "green",
    "insert": "cyan",
    "append": "cyan",
    "gsub": "cyan",
    "update": "cyan",
    "remove": "red",
    "skip": "yellow",
    "run": "magenta",
    "generate": "magenta",
    "hook": "blue",
}


def say_status(action: str, message: str) -> None:
    """Print a right-aligned action label followed by *message*.

    Mirrors the ``create  config/x.rb`` lines of Rails generators.
    """
    color = STATUS_COLORS.get(action, "white")
    console.print(f"[bold {color}]{action:>12}[/bold {color}]  {escape(message)}", highlight=False)


def print_phase_header(name: str, color: str = "bright_cyan") -> None:
    """Print a full-width rule announcing a lifecycle step."""
    console.print()
    console.print(Rule(f"[bold {color}] {name} [/bold {color}]", style=color))
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
