"""Installer: registers the browser agent with the content platform.

Idempotent: if any registered script tag already points at gate-agent.js the
install is skipped and reported as ALREADY_INSTALLED. Platform validation
failures (userErrors) raise ScriptInstallError with the platform's first
message verbatim, for display to the operator.
"""

from __future__ import annotations

import enum

from pagegate.constants import AGENT_SCRIPT_MARKER, PLATFORM_SCRIPT_TAGS_LIMIT
from pagegate.platform.protocol import ContentPlatform
from pagegate.utils.logger import get_logger

logger = get_logger(__name__)


class InstallOutcome(str, enum.Enum):
    INSTALLED = "installed"
    ALREADY_INSTALLED = "already_installed"


class ScriptInstallError(Exception):
    """The platform refused the script registration."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ScriptInstaller:
    def __init__(self, platform: ContentPlatform, script_url: str) -> None:
        self._platform = platform
        self.script_url = script_url

    async def is_installed(self) -> bool:
        tags = await self._platform.list_script_tags(PLATFORM_SCRIPT_TAGS_LIMIT)
        return any(AGENT_SCRIPT_MARKER in tag.src for tag in tags)

    async def install(self) -> InstallOutcome:
        """Register the agent script unless it is already registered.

        Raises:
            ScriptInstallError: platform returned userErrors.
            PlatformError:      platform unreachable or errored.
        """
        if await self.is_installed():
            logger.info("agent script already installed", script_url=self.script_url)
            return InstallOutcome.ALREADY_INSTALLED

        result = await self._platform.create_script_tag(self.script_url)
        if result.user_errors:
            logger.warning(
                "agent script install rejected",
                script_url=self.script_url,
                user_error=result.user_errors[0],
            )
            raise ScriptInstallError(result.user_errors[0])

        logger.info(
            "agent script installed",
            script_url=self.script_url,
            script_tag_id=result.script_tag.id if result.script_tag else None,
        )
        return InstallOutcome.INSTALLED
