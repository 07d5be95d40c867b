"""Management surface: tagged commands and the /admin/api router."""

from pagegate.admin.commands import (
    Command,
    CommandDispatcher,
    CommandResult,
    InstallScript,
    ProtectPage,
    RemoveProtection,
)

__all__ = [
    "Command",
    "CommandDispatcher",
    "CommandResult",
    "InstallScript",
    "ProtectPage",
    "RemoveProtection",
]
