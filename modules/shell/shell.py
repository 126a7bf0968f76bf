"""
Shell operations for cowsh.

Runs external commands and performs filesystem operations, turning OS errors
into classified messages on the Console and a boolean outcome for the caller.
"""

import errno
import os
import re
import shutil
import subprocess
import sys
from dataclasses import dataclass
from enum import Enum
from typing import IO, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from rich.markup import escape

from core.console import Console, StatusKind
from core.logger import AuditLogger, ActionType, ActionStatus


PathList = Union[str, Sequence[str]]


def _as_list(value) -> list:
    """Wrap a single value in a list; None becomes an empty list."""
    if value is None:
        return []
    if isinstance(value, (str, bytes, os.PathLike, re.Pattern, Enum)):
        return [value]
    return list(value)


@dataclass
class CommandResult:
    """Outcome of Shell.run."""
    exit_status: int = 0
    output: str = ""

    @property
    def success(self) -> bool:
        return self.exit_status == 0


@dataclass
class RunOptions:
    """
    How a command should be run and reported.

    Attributes:
        command: Command line, passed to the system shell
        message: Text announced before running (defaults to the command)
        announce: Print the message as the start of a status line
        echo_output: Stream output lines to stdout as they arrive;
                     None follows the Console's show_outputs flag
        report_exit_status: Print an OK/FAIL status once the command ends
        abort_on_failure: Exit the process with status 1 on non-zero exit
    """
    command: str
    message: Optional[str] = None
    announce: bool = False
    echo_output: Optional[bool] = None
    report_exit_status: bool = False
    abort_on_failure: bool = False

    def __post_init__(self):
        if not isinstance(self.command, str) or not self.command.strip():
            raise ValueError("RunOptions.command must be a non-empty string")


class FileCheck(Enum):
    """Predicates accepted by Shell.file_check."""
    EXISTS = "exists"
    READABLE = "readable"
    WRITABLE = "writable"
    EXECUTABLE = "executable"
    DIRECTORY = "directory"
    SYMLINK = "symlink"

    @classmethod
    def parse(cls, test) -> Optional["FileCheck"]:
        """Resolve a FileCheck or a name like "directory" or "fc_dir"; None if unknown."""
        if isinstance(test, cls):
            return test
        name = str(test).lower()
        if name.startswith("fc_"):
            name = name[3:]
        name = _CHECK_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            return None

    def holds(self, path: str) -> bool:
        if self is FileCheck.EXISTS:
            return os.path.exists(path)
        if self is FileCheck.READABLE:
            return os.access(path, os.R_OK)
        if self is FileCheck.WRITABLE:
            return os.access(path, os.W_OK)
        if self is FileCheck.EXECUTABLE:
            return os.access(path, os.X_OK)
        if self is FileCheck.DIRECTORY:
            return os.path.isdir(path)
        return os.path.islink(path)


_CHECK_ALIASES = {
    "exist": "exists",
    "read": "readable",
    "write": "writable",
    "writeable": "writable",
    "exec": "executable",
    "dir": "directory",
    "link": "symlink",
}


@dataclass
class FileCheckSpec:
    """A path and the predicates that must all hold for it."""
    path: Optional[str]
    predicates: Tuple = (FileCheck.EXISTS,)

    def check(self) -> bool:
        if not self.path:
            return False
        if not os.path.exists(self.path):
            return False

        for test in self.predicates or (FileCheck.EXISTS,):
            predicate = FileCheck.parse(test)
            if predicate is None or not predicate.holds(self.path):
                return False
        return True


class FailureKind(Enum):
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    UNKNOWN = "unknown"


@dataclass
class Failure:
    """A caught exception sorted into a FailureKind."""
    kind: FailureKind
    target: Optional[str]
    message: str


_PERMISSION_MESSAGE = re.compile(r"Permission denied(?:\s*[-:]\s*'?(?P<target>[^']+)'?)?")
_NOT_FOUND_MESSAGE = re.compile(r"No such file or directory(?:\s*[-:]\s*'?(?P<target>[^']+)'?)?")


def classify_error(exc: BaseException) -> Failure:
    """
    Sort an exception by its errno, falling back to the message text only when
    the exception carries no errno.
    """
    message = str(exc)
    code = getattr(exc, "errno", None)
    target = getattr(exc, "filename", None)
    if target is not None:
        target = os.fsdecode(target)

    if code is not None:
        if code in (errno.EACCES, errno.EPERM):
            return Failure(FailureKind.PERMISSION_DENIED, target, message)
        if code == errno.ENOENT:
            return Failure(FailureKind.NOT_FOUND, target, message)
        return Failure(FailureKind.UNKNOWN, target, message)

    for kind, pattern in ((FailureKind.PERMISSION_DENIED, _PERMISSION_MESSAGE),
                          (FailureKind.NOT_FOUND, _NOT_FOUND_MESSAGE)):
        match = pattern.search(message)
        if match:
            return Failure(kind, target or match.group("target"), message)

    return Failure(FailureKind.UNKNOWN, target, message)


class Shell:
    """
    Commands and filesystem operations reported through a Console.

    Every mutating operation honours the Console's skip_commands (dry-run)
    flag: the would-be action is printed and success is reported without
    touching the filesystem. Failures are caught at the method boundary; the
    only thing that escapes is SystemExit when a fatal failure aborts.
    """

    def __init__(self, console: Optional[Console] = None, logger: Optional[AuditLogger] = None):
        """
        Initialize the Shell.

        Args:
            console: Console used for messages and mode flags (a default one
                     is created when omitted)
            logger: Optional audit logger recording each operation
        """
        self.console = console or Console()
        self.logger = logger

    # --- reporting helpers ---

    def _audit(self, action_type: ActionType, description: str, success: bool,
               result: Optional[str] = None, **metadata) -> None:
        if self.logger is None:
            return

        if self.console.skip_commands:
            status = ActionStatus.DRY_RUN
        elif success:
            status = ActionStatus.EXECUTED
        else:
            status = ActionStatus.FAILED

        self.logger.log_action(
            action_type=action_type,
            description=description,
            status=status,
            result=result,
            metadata=metadata
        )

    def _dry_run(self, line: str) -> None:
        self.console.write(f"[dim]{escape(line)}[/dim]")

    def _report_generic(self, headline: str, entries: Iterable[str], error: BaseException) -> None:
        """List every requested entry followed by the raw error."""
        self.console.error(headline)
        with self.console.indent_region():
            for entry in entries:
                self.console.write(f"[bold white]{escape(str(entry))}[/bold white]")
        self.console.write(f"due to an error: [bold red]{escape(str(error))}[/bold red]")

    def _fail(self) -> bool:
        self.console.status(StatusKind.FAIL, fatal=False)
        return False

    # --- commands ---

    def run(self, options: Union[RunOptions, str], **fields) -> CommandResult:
        """
        Run a command through the system shell with stderr merged into stdout.

        Args:
            options: A RunOptions, or a command string completed by ``fields``
            fields: RunOptions attributes when ``options`` is a string

        Returns:
            CommandResult with the exit status and the merged output
        """
        if not isinstance(options, RunOptions):
            options = RunOptions(command=options, **fields)
        elif fields:
            raise TypeError("Pass either RunOptions or keyword fields, not both")

        command = options.command
        result = CommandResult()
        echo = self.console.show_outputs if options.echo_output is None else options.echo_output

        if options.announce:
            self.console.begin(escape(options.message or command))

        if self.console.show_commands:
            self.console.warn(f'Will run command: "{escape(command)}"')
            self.console.status(StatusKind.OK)

        if not self.console.skip_commands:
            result = self._execute(command, echo)

        if options.report_exit_status:
            self.console.status(StatusKind.OK if result.success else StatusKind.FAIL, fatal=False)

        self._audit(ActionType.RUN, f"Run: {command}", result.success,
                    result=f"exit status {result.exit_status}", command=command)

        if options.abort_on_failure and not result.success:
            sys.exit(1)

        return result

    def _execute(self, command: str, echo: bool) -> CommandResult:
        lines = []

        try:
            process = subprocess.Popen(
                command,
                shell=True,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace"
            )
        except OSError as e:
            self.console.error(f"Cannot run command [bold white]{escape(command)}[/bold white]: {escape(str(e))}")
            return CommandResult(exit_status=127, output="")

        with process:
            for line in process.stdout:
                lines.append(line.rstrip("\r\n"))
                if echo:
                    sys.stdout.write(line)
                    sys.stdout.flush()
            exit_status = process.wait()

        return CommandResult(exit_status=exit_status, output="\n".join(lines))

    # --- files ---

    def open_file(self, name: str, mode: str = "r", encoding: Optional[str] = None) -> Optional[IO]:
        """
        Open a file, reporting the error and returning None when it cannot be opened.
        """
        try:
            return open(name, mode, encoding=encoding)
        except (OSError, ValueError) as e:
            self.console.error(f"Unable to open file {escape(str(name))}: {escape(str(e))}")
            return None

    def file_check(self, path: Optional[str], tests=None) -> bool:
        """
        Check that a path exists and satisfies every requested test.

        Args:
            path: The file/directory path
            tests: A FileCheck, a name such as "directory", or a list of them
                   (default: exists)

        Returns:
            True if the path exists and all tests pass, False otherwise.
            Unknown tests count as failed.
        """
        predicates = tuple(_as_list(tests)) or (FileCheck.EXISTS,)
        return FileCheckSpec(path, predicates).check()

    def delete_files(self, paths: PathList, show_errors: bool = False, fatal: bool = False) -> bool:
        """
        Recursively delete files and directories, stopping at the first failure.

        Permission and not-found failures are reported (with ``show_errors``)
        but never abort; other failures abort when ``fatal`` is set.

        Returns:
            True if every entry was removed, False otherwise
        """
        files = [os.fspath(path) for path in _as_list(paths)]
        rv = True

        try:
            for path in files:
                if self.console.skip_commands:
                    self._dry_run(f"rm -r {path}")
                elif os.path.isdir(path) and not os.path.islink(path):
                    shutil.rmtree(path)
                else:
                    os.remove(path)
        except Exception as e:
            rv = False
            failure = classify_error(e)

            if failure.kind is FailureKind.PERMISSION_DENIED:
                if show_errors:
                    self.console.error(
                        f"Cannot remove following non writable entry: "
                        f"[bold white]{escape(str(failure.target))}[/bold white]")
            elif failure.kind is FailureKind.NOT_FOUND:
                if show_errors:
                    self.console.error(
                        f"Cannot remove following non existent entry: "
                        f"[bold white]{escape(str(failure.target))}[/bold white]")
            else:
                if show_errors:
                    self._report_generic("Cannot remove following entries:", files, e)
                if fatal:
                    sys.exit(1)

        self._audit(ActionType.DELETE, f"Delete: {', '.join(files)}", rv, paths=files)
        return rv or self._fail()

    def create_directories(self, paths: PathList, mode: int = 0o755,
                           fatal: bool = False, show_errors: bool = False) -> bool:
        """
        Create directories and any missing parents, stopping at the first failure.

        A path that already exists, even as a directory, is a failure.

        Args:
            paths: Directories to create
            mode: Permission bits for newly created directories

        Returns:
            True if every directory was created, False otherwise
        """
        files = [os.fspath(path) for path in _as_list(paths)]
        rv = True

        for path in files:
            if os.path.exists(path):
                kind = "because it already exists." if os.path.isdir(path) \
                    else "because it already exists as a file."
                self.console.error(
                    f"Cannot create following directory [bold white]{escape(path)}[/bold white] {kind}")
                rv = False
                break

            try:
                if self.console.skip_commands:
                    self._dry_run(f"mkdir -p -m {mode:o} {path}")
                else:
                    os.makedirs(path, mode)
            except Exception as e:
                rv = False
                failure = classify_error(e)

                if failure.kind is FailureKind.PERMISSION_DENIED:
                    if show_errors:
                        self.console.error(
                            f"Cannot create following directory in non writable parent: "
                            f"[bold white]{escape(str(failure.target or path))}[/bold white].")
                else:
                    if show_errors:
                        self._report_generic("Cannot create following directories:", files, e)
                    if fatal:
                        sys.exit(1)
                break

        self._audit(ActionType.MKDIR, f"Create directories: {', '.join(files)}", rv,
                    paths=files, mode=format(mode, "04o"))
        return rv or self._fail()

    def copy(self, paths: PathList, destination: str, move: bool = False,
             destination_is_directory: bool = False, fatal: bool = False,
             show_errors: bool = False) -> bool:
        """
        Copy or move entries.

        With ``destination_is_directory`` every entry in ``paths`` is copied
        (recursively, replacing existing entries) or moved into
        ``destination``. Otherwise ``paths`` and ``destination`` must both be
        single file paths; the destination's parent directory is created when
        missing.

        Returns:
            True if everything was copied/moved, False otherwise
        """
        verb = "move" if move else "copy"
        action_type = ActionType.MOVE if move else ActionType.COPY

        if destination_is_directory:
            sources = [os.fspath(path) for path in _as_list(paths)]
            rv = self._copy_to_directory(sources, destination, move, fatal, show_errors)
        elif not isinstance(paths, str) or not isinstance(destination, str):
            self.console.error(
                "Shell.copy: To copy a single file, both paths and destination must be strings.")
            rv = False
            sources = [str(path) for path in _as_list(paths)]
        else:
            rv = self._copy_file(paths, destination, move, fatal, show_errors)
            sources = [paths]

        self._audit(action_type, f"{verb.capitalize()}: {', '.join(sources)} -> {destination}", rv,
                    sources=sources, destination=str(destination))
        return rv or self._fail()

    def _copy_to_directory(self, files: List[str], destination: str, move: bool,
                           fatal: bool, show_errors: bool) -> bool:
        verb = "move" if move else "copy"
        dest = os.fspath(destination)
        if os.path.isdir(dest) and not dest.endswith(os.sep):
            dest += os.sep

        for path in files:
            try:
                if self.console.skip_commands:
                    self._dry_run(f"{'mv' if move else 'cp -r'} {path} {dest}")
                elif move:
                    shutil.move(path, dest)
                else:
                    _copy_entry(path, dest)
            except Exception as e:
                failure = classify_error(e)

                if failure.kind is FailureKind.PERMISSION_DENIED:
                    if show_errors:
                        self.console.error(
                            f"Cannot {verb} entry [bold white]{escape(str(path))}[/bold white] "
                            f"to non-writable entry [bold white]{escape(dest)}[/bold white]")
                else:
                    if show_errors:
                        self._report_generic(
                            f"Cannot {verb} following entries to [bold white]{escape(dest)}[/bold white]:",
                            files, e)
                    if fatal:
                        sys.exit(1)
                return False

        return True

    def _copy_file(self, source: str, destination: str, move: bool,
                   fatal: bool, show_errors: bool) -> bool:
        verb = "move" if move else "copy"
        parent = os.path.dirname(destination)

        if parent and not self.file_check(parent, [FileCheck.EXISTS, FileCheck.DIRECTORY]):
            self.create_directories(parent, mode=0o755, fatal=fatal, show_errors=show_errors)

        try:
            if self.console.skip_commands:
                self._dry_run(f"{'mv' if move else 'cp'} {source} {destination}")
            elif move:
                shutil.move(source, destination)
            else:
                shutil.copy(source, destination)
        except Exception as e:
            failure = classify_error(e)

            if failure.kind is FailureKind.PERMISSION_DENIED:
                if show_errors:
                    self.console.error(
                        f"Cannot {verb} entry [bold white]{escape(source)}[/bold white] "
                        f"to non-writable entry [bold white]{escape(destination)}[/bold white]")
            else:
                if show_errors:
                    self.console.error(
                        f"Cannot {verb} [bold white]{escape(source)}[/bold white] "
                        f"to [bold white]{escape(destination)}[/bold white] "
                        f"due to an error: [bold red]{escape(str(e))}[/bold red]")
                if fatal:
                    sys.exit(1)
            return False

        return True

    def rename(self, source: str, destination: str, fatal: bool = False, show_errors: bool = False) -> bool:
        """
        Rename (move) a single file, creating the destination's parent if needed.
        """
        if isinstance(source, str) and isinstance(destination, str):
            return self.copy(source, destination, move=True, fatal=fatal, show_errors=show_errors)

        if show_errors:
            self.console.error("Shell.rename: Both source and destination must be strings.")
        return self._fail()

    # --- search ---

    def find_by_pattern(self, paths: PathList, patterns) -> List[str]:
        """
        Find entries below ``paths`` whose full path matches any pattern.

        String patterns are compiled case-insensitively; compiled patterns are
        used as given. Roots that do not exist are skipped. An invalid pattern
        is reported and yields an empty list.

        Returns:
            Matching paths, in depth-first order
        """
        roots = [os.fspath(path) for path in _as_list(paths)]
        try:
            compiled = [
                pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, re.IGNORECASE)
                for pattern in _as_list(patterns)
            ]
        except re.error as e:
            self.console.error(
                f"Invalid pattern [bold white]{escape(str(e.pattern))}[/bold white]: {escape(str(e))}")
            return []

        if not roots or not compiled:
            return []

        found = []
        for root in roots:
            for path in _walk(root):
                if any(pattern.search(path) for pattern in compiled):
                    found.append(path)

        self._audit(ActionType.FIND, f"Find in: {', '.join(roots)}", True,
                    result=f"{len(found)} entries", patterns=[p.pattern for p in compiled])
        return found

    def find_by_extension(self, paths: PathList, extensions) -> List[str]:
        """Find entries below ``paths`` whose name ends with one of ``extensions`` (any case)."""
        patterns = [re.compile(re.escape(extension) + "$", re.IGNORECASE)
                    for extension in _as_list(extensions)]
        return self.find_by_pattern(paths, patterns)


def _copy_entry(source: str, destination: str) -> None:
    """Copy a file or a directory tree, replacing entries already at the destination."""
    if os.path.isdir(destination):
        target = os.path.join(destination, os.path.basename(source.rstrip(os.sep)))
    else:
        target = destination

    # The top-level entry is dereferenced; links below it are copied as links
    if os.path.isdir(source):
        shutil.copytree(source, target, symlinks=True, dirs_exist_ok=True, copy_function=_replace_file)
    else:
        _replace_file(source, target)


def _replace_file(source: str, destination: str) -> str:
    if os.path.lexists(destination) and not os.path.isdir(destination):
        os.remove(destination)
    return shutil.copy2(source, destination)


def _walk(root: str) -> Iterator[str]:
    """Yield root, then everything below it depth-first in sorted order."""
    if not os.path.lexists(root):
        return

    yield root
    if not os.path.isdir(root) or os.path.islink(root):
        return

    try:
        names = sorted(os.listdir(root))
    except OSError:
        return

    for name in names:
        yield from _walk(os.path.join(root, name))
