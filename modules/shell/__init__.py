"""
Shell module for cowsh.

Runs commands and performs file and directory operations, reporting through a Console.
"""

from .shell import (
    Shell,
    CommandResult,
    RunOptions,
    FileCheck,
    FileCheckSpec,
    FailureKind,
    Failure,
    classify_error,
)

__all__ = [
    'Shell',
    'CommandResult',
    'RunOptions',
    'FileCheck',
    'FileCheckSpec',
    'FailureKind',
    'Failure',
    'classify_error',
]
