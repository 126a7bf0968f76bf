"""
Console output for cowsh.

Renders messages, warnings, errors and status markers with rich markup and
carries the flags that change how the Shell behaves (show commands, dry-run,
echo command output).
"""

import sys
from contextlib import contextmanager
from enum import Enum
from typing import IO, Iterator, Optional, TYPE_CHECKING

from rich.console import Console as RichConsole

if TYPE_CHECKING:
    from .config import Settings


class StatusKind(Enum):
    """Status markers printed at the end of an operation line."""
    OK = ("OK", "bold green")
    PASS = ("PASS", "bold cyan")
    WARN = ("WARN", "bold yellow")
    FAIL = ("FAIL", "bold red")
    SKIP = ("SKIP", "bold blue")
    DEBUG = ("DEBUG", "bold magenta")

    @property
    def label(self) -> str:
        return self.value[0]

    @property
    def style(self) -> str:
        return self.value[1]

    @classmethod
    def parse(cls, kind) -> "StatusKind":
        """Accept a StatusKind or its name in any case."""
        if isinstance(kind, cls):
            return kind
        try:
            return cls[str(kind).upper()]
        except KeyError:
            raise ValueError(f"Unknown status kind: {kind}")


class Console:
    """
    Message writer shared by the Shell and scripts.

    Output goes through a rich console. Pass ``file`` to redirect it (tests use
    a StringIO). Messages are rich markup, so callers escape any interpolated
    text that may contain brackets.
    """

    def __init__(
        self,
        show_commands: bool = False,
        skip_commands: bool = False,
        show_outputs: bool = False,
        indentator: str = " ",
        indent_width: int = 3,
        file: Optional[IO[str]] = None
    ):
        self.show_commands = show_commands
        self.skip_commands = skip_commands
        self.show_outputs = show_outputs
        self.indentator = indentator
        self.indent_width = indent_width
        self.indent_level = 0
        self.output = RichConsole(file=file, highlight=False, soft_wrap=True)
        self._line_open = False

    @classmethod
    def from_settings(cls, settings: "Settings", file: Optional[IO[str]] = None) -> "Console":
        return cls(
            show_commands=settings.show_commands,
            skip_commands=settings.skip_commands,
            show_outputs=settings.show_outputs,
            indentator=settings.indentator,
            indent_width=settings.indent_width,
            file=file
        )

    @property
    def indentation(self) -> str:
        return self.indentator * self.indent_level

    def _print(self, text: str, end: str = "\n") -> None:
        # Close a pending begin() line before printing anything else
        if self._line_open and end == "\n":
            self.output.print()
            self._line_open = False
        self.output.print(text, end=end)

    def _abort(self) -> None:
        self.output.file.flush()
        sys.exit(1)

    def write(self, message: str = "", dots: bool = False, fatal: bool = False) -> None:
        """
        Print an indented message.

        Args:
            message: Rich markup text
            dots: Append an ellipsis, for lines followed by more output
            fatal: Exit the process with status 1 afterwards
        """
        text = self.indentation + message
        if dots:
            text += " ..."
        self._print(text)

        if fatal:
            self._abort()

    def begin(self, message: str) -> None:
        """Start an operation line; the next status() call completes it."""
        self._print(f"{self.indentation}[bold]*[/bold] {message} ...", end="")
        self._line_open = True

    def warn(self, message: str, dots: bool = False, fatal: bool = False) -> None:
        self.write(f"[bold yellow]WARNING:[/bold yellow] {message}", dots=dots, fatal=fatal)

    def error(self, message: str, dots: bool = False, fatal: bool = False) -> None:
        self.write(f"[bold red]ERROR:[/bold red] {message}", dots=dots, fatal=fatal)

    def status(self, kind="ok", fatal: bool = False) -> None:
        """
        Print a status marker, on the pending begin() line when there is one.

        Only a FAIL status honours ``fatal``.
        """
        kind = StatusKind.parse(kind)
        marker = f"[{kind.style}]\\[{kind.label}][/{kind.style}]"

        if self._line_open:
            self.output.print(f" {marker}")
            self._line_open = False
        else:
            self.output.print(f"{self.indentation}{marker}")

        if fatal and kind is StatusKind.FAIL:
            self._abort()

    @contextmanager
    def indent_region(self, depth: Optional[int] = None) -> Iterator["Console"]:
        """Increase the indentation for the duration of the block."""
        step = self.indent_width if depth is None else depth
        self.indent_level += step
        try:
            yield self
        finally:
            self.indent_level -= step
