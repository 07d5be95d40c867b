"""Management commands: one variant per operation, one handler per variant.

Commands:
  ProtectPage(tenant, resource_ref, secret)   → create a protection record
  InstallScript(tenant)                       → register the browser agent
  RemoveProtection(tenant, resource_ref)      → delete the protection record

CommandDispatcher resolves a command to its handler by type. Every handler
returns a CommandResult; expected failures (page not found, already
protected, platform userErrors, storage errors) become success=False with an
operator-facing message rather than exceptions.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union

from pagegate.auth.hashing import SecretTooLongError, hash_secret
from pagegate.constants import DEFAULT_BCRYPT_ROUNDS
from pagegate.platform.installer import InstallOutcome, ScriptInstaller, ScriptInstallError
from pagegate.platform.protocol import ContentPlatform, PlatformError
from pagegate.registry.models import ProtectionRecord
from pagegate.registry.protocol import DuplicateRecordError, Registry
from pagegate.utils.logger import get_logger

logger = get_logger(__name__)


# ─── Command variants ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProtectPage:
    tenant: str
    resource_ref: str
    secret: str

    def __repr__(self) -> str:
        return f"ProtectPage(tenant={self.tenant!r}, resource_ref={self.resource_ref!r}, secret=***)"


@dataclass(frozen=True)
class InstallScript:
    tenant: str


@dataclass(frozen=True)
class RemoveProtection:
    tenant: str
    resource_ref: str


Command = Union[ProtectPage, InstallScript, RemoveProtection]


@dataclass(frozen=True)
class CommandResult:
    success: bool
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message}


# ─── Dispatcher ───────────────────────────────────────────────────────────────


class CommandDispatcher:
    """Routes each command variant to its handler.

    Built per request: ``platform`` is already scoped to the command's tenant.
    """

    def __init__(
        self,
        registry: Registry,
        platform: ContentPlatform,
        script_url: str,
        bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS,
    ) -> None:
        self._registry = registry
        self._platform = platform
        self._script_url = script_url
        self._bcrypt_rounds = bcrypt_rounds
        self._handlers: dict[type, Callable[[Any], Awaitable[CommandResult]]] = {
            ProtectPage: self._protect_page,
            InstallScript: self._install_script,
            RemoveProtection: self._remove_protection,
        }

    async def dispatch(self, command: Command) -> CommandResult:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unsupported command: {type(command).__name__}")
        result = await handler(command)
        logger.info(
            "admin command handled",
            command=type(command).__name__,
            tenant=command.tenant,
            success=result.success,
        )
        return result

    # ── Handlers ──────────────────────────────────────────────────────────────

    async def _protect_page(self, command: ProtectPage) -> CommandResult:
        if not command.resource_ref or not command.secret:
            return CommandResult(False, "Please select a page and enter a password")

        try:
            existing = await self._registry.find_by_resource_ref(
                command.tenant, command.resource_ref
            )
        except Exception as exc:
            logger.error(
                "Error protecting page",
                tenant=command.tenant,
                resource_ref=command.resource_ref,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return CommandResult(False, "Failed to protect page")
        if existing:
            return CommandResult(False, "This page is already protected")

        try:
            page = await self._platform.get_page(command.resource_ref)
        except PlatformError as exc:
            return CommandResult(False, str(exc))
        if page is None:
            return CommandResult(False, "Page not found")

        try:
            secret_hash = await asyncio.to_thread(
                hash_secret, command.secret, self._bcrypt_rounds
            )
        except SecretTooLongError as exc:
            return CommandResult(False, str(exc))

        record = ProtectionRecord(
            tenant=command.tenant,
            handle=page.handle,
            title=page.title,
            secret_hash=secret_hash,
            resource_ref=page.resource_ref,
        )
        try:
            await self._registry.create(record)
        except DuplicateRecordError:
            return CommandResult(False, "This page is already protected")
        except Exception as exc:
            logger.error(
                "Error protecting page",
                tenant=command.tenant,
                resource_ref=command.resource_ref,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return CommandResult(False, "Failed to protect page")

        return CommandResult(True, f'Page "{page.title}" is now protected')

    async def _install_script(self, command: InstallScript) -> CommandResult:
        installer = ScriptInstaller(self._platform, self._script_url)
        try:
            outcome = await installer.install()
        except ScriptInstallError as exc:
            return CommandResult(False, f"Script installation failed: {exc.message}")
        except PlatformError as exc:
            logger.error("Error installing script", tenant=command.tenant, error=str(exc))
            return CommandResult(False, "Failed to install protection script")

        if outcome is InstallOutcome.ALREADY_INSTALLED:
            return CommandResult(True, "Protection script already installed")
        return CommandResult(True, "Password protection script installed successfully")

    async def _remove_protection(self, command: RemoveProtection) -> CommandResult:
        if not command.resource_ref:
            return CommandResult(False, "Please select a page")
        try:
            await self._registry.delete_by_resource_ref(command.tenant, command.resource_ref)
        except Exception as exc:
            logger.error(
                "Error removing protection",
                tenant=command.tenant,
                resource_ref=command.resource_ref,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return CommandResult(False, "Failed to remove protection")
        return CommandResult(True, "Page protection removed")
