# cowsh - Core Module
"""
Core infrastructure for cowsh: console output, option parsing, settings,
audit logging and version metadata.
"""

from .console import Console, StatusKind
from .options import OptionParser
from .config import Settings
from .logger import AuditLogger, AuditEntry, ActionType, ActionStatus
from .version import STRING as VERSION

__all__ = [
    "Console",
    "StatusKind",
    "OptionParser",
    "Settings",
    "AuditLogger",
    "AuditEntry",
    "ActionType",
    "ActionStatus",
    "VERSION",
]

__version__ = VERSION
