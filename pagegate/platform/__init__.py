"""Host content platform integration: page enumeration and agent installation."""

from pagegate.platform.installer import InstallOutcome, ScriptInstaller, ScriptInstallError
from pagegate.platform.protocol import (
    ContentPlatform,
    PlatformError,
    PlatformPage,
    ScriptTag,
    ScriptTagCreateResult,
)
from pagegate.platform.shopify import (
    ShopifyAdminClient,
    create_http_client,
    shopify_platform_factory,
)

__all__ = [
    "ContentPlatform",
    "PlatformError",
    "PlatformPage",
    "ScriptTag",
    "ScriptTagCreateResult",
    "ShopifyAdminClient",
    "shopify_platform_factory",
    "create_http_client",
    "ScriptInstaller",
    "ScriptInstallError",
    "InstallOutcome",
]
