"""
Command-line option parsing for cowsh scripts.

A thin declarative layer over click: options are registered one by one and
then parsed into a plain dictionary, leaving positional arguments in ``args``.
"""

import sys
from typing import Any, Dict, List, Optional, Sequence

import click
from rich.markup import escape

from .console import Console


class OptionParser:
    """
    Collects option declarations and parses argv with click.

    Example:
        parser = OptionParser("deploy", version="1.0.0")
        parser.add_option("target", "-t", "--target", required=True)
        parser.add_option("dry_run", "-n", "--dry-run", is_flag=True)
        values = parser.parse()
    """

    def __init__(
        self,
        name: str,
        version: Optional[str] = None,
        description: Optional[str] = None,
        console: Optional[Console] = None
    ):
        self.name = name
        self.version = version
        self.description = description
        self.console = console or Console()
        self.values: Dict[str, Any] = {}
        self.args: List[str] = []
        self._options: List[click.Option] = []

    def add_option(
        self,
        name: str,
        *flags: str,
        type: Any = None,
        help: Optional[str] = None,
        default: Any = None,
        required: bool = False,
        is_flag: bool = False,
        multiple: bool = False,
        choices: Optional[Sequence[str]] = None
    ) -> "OptionParser":
        """
        Register an option.

        Args:
            name: Key of the parsed value
            flags: Short and long forms, e.g. "-v", "--verbose". Defaults to
                   "--<name>" with underscores turned into dashes.
            type: Python type or click type of the value
            help: Help text
            default: Value when the option is absent
            required: Fail parsing when the option is absent
            is_flag: Boolean switch taking no value
            multiple: Option may repeat; the value is a tuple
            choices: Restrict the value to these strings

        Returns:
            The parser, so declarations can be chained
        """
        if any(option.name == name for option in self._options):
            raise ValueError(f"Option already registered: {name}")

        declarations = list(flags) or ["--" + name.replace("_", "-")]
        if choices is not None:
            type = click.Choice(list(choices))
        if is_flag and default is None:
            default = False

        # Unset default/type are left out so click keeps its own handling of
        # required and multiple options
        attrs: Dict[str, Any] = {}
        if type is not None:
            attrs["type"] = type
        if default is not None:
            attrs["default"] = default

        self._options.append(click.Option(
            declarations + [name],
            help=help,
            required=required,
            is_flag=is_flag,
            multiple=multiple,
            **attrs
        ))
        return self

    def _build_command(self) -> click.Command:
        command = click.Command(
            self.name,
            params=list(self._options) + [click.Argument(["args"], nargs=-1)],
            help=self.description,
            callback=lambda **_: None
        )
        if self.version is not None:
            command = click.version_option(version=self.version, prog_name=self.name)(command)
        return command

    def parse(self, args: Optional[Sequence[str]] = None) -> Dict[str, Any]:
        """
        Parse the given arguments (``sys.argv[1:]`` when omitted).

        ``--help`` and ``--version`` print and exit with status 0. A usage
        error prints click's message and exits with click's status code.
        """
        argv = list(sys.argv[1:] if args is None else args)
        command = self._build_command()

        try:
            with command.make_context(self.name, argv) as ctx:
                params = dict(ctx.params)
        except click.exceptions.Exit as e:
            sys.exit(e.exit_code)
        except click.UsageError as e:
            self.console.error(f"{self.name}: {escape(e.format_message())}")
            sys.exit(e.exit_code)

        self.args = list(params.pop("args", ()))
        self.values = params
        return self.values

    def help(self) -> str:
        """Return the formatted help text."""
        command = self._build_command()
        with click.Context(command, info_name=self.name) as ctx:
            return command.get_help(ctx)

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self.values[name]

    def __contains__(self, name: str) -> bool:
        return name in self.values
