"""Config loading for PageGate.

Reads `.pagegate/config.yaml` (or `~/.pagegate/config.yaml`).
Raises SystemExit on parse errors or missing `version` field.
If no config file is found, returns default values (safe to run without config).

Config search order:
  1. `config_path` argument (if provided, for testing or explicit override)
  2. PAGEGATE_CONFIG environment variable (if set)
  3. `.pagegate/config.yaml` (working directory, for development)
  4. `~/.pagegate/config.yaml` (home directory, for production deployments)

Environment variable overrides:
  PAGEGATE_PORT             — overrides server.port
  PAGEGATE_REGISTRY_DB_PATH — overrides registry.path
  PAGEGATE_CONFIG           — sets an explicit config file path to try first

Example file::

    version: 1
    server:
      port: 8080
      public_url: https://gate.example.com
      cors_origins: ["https://admin.example.com"]
    registry:
      backend: sqlite
      path: ~/.pagegate/registry.db
    platform:
      api_version: "2024-10"
      access_tokens:
        shop1.myshopify.com: shpat_xxx
    admin:
      keys:
        shop1.myshopify.com: "$2b$12$..."   # bcrypt hash of the admin key
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import Optional

import yaml

from pagegate.constants import DEFAULT_BCRYPT_ROUNDS, DEFAULT_PLATFORM_API_VERSION
from pagegate.utils.logger import get_logger

logger = get_logger(__name__)

# ─── Version constants ────────────────────────────────────────────────────────

SUPPORTED_CONFIG_VERSION = 1

SUPPORTED_VERSIONS: frozenset[int] = frozenset({1})

# ─── Validation sets ─────────────────────────────────────────────────────────

VALID_REGISTRY_BACKENDS: frozenset[str] = frozenset({"sqlite", "memory"})

# Default config search paths (PAGEGATE_CONFIG env var prepended at runtime)
DEFAULT_CONFIG_PATHS = [
    ".pagegate/config.yaml",
    os.path.expanduser("~/.pagegate/config.yaml"),
]

_DEFAULT_REGISTRY_PATH = "~/.pagegate/registry.db"


# ─── Dataclasses ─────────────────────────────────────────────────────────────


@dataclass
class ServerConfig:
    """HTTP binding and public exposure.

    public_url:   Externally reachable base URL; the installer registers
                  ``{public_url}/gate-agent.js`` with the content platform.
    cors_origins: Origins allowed to call the admin API cross-origin. The
                  gate endpoints answer any origin regardless.
    """

    host: str = "127.0.0.1"
    port: int = 8080
    public_url: str = "http://127.0.0.1:8080"
    cors_origins: list[str] = field(default_factory=list)


@dataclass
class RegistryConfig:
    """Protection-record store configuration."""

    backend: str = "sqlite"  # "sqlite" | "memory"
    path: str = _DEFAULT_REGISTRY_PATH
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS


@dataclass
class PlatformConfig:
    """Content platform admin API access (per-tenant access tokens)."""

    api_version: str = DEFAULT_PLATFORM_API_VERSION
    access_tokens: dict[str, str] = field(default_factory=dict)


@dataclass
class AdminConfig:
    """Management surface credentials: tenant → bcrypt hash of its admin key."""

    keys: dict[str, str] = field(default_factory=dict)


@dataclass
class Config:
    """Root configuration object populated from .pagegate/config.yaml.

    All fields have safe defaults; PageGate can start without any config file.
    """

    version: int = SUPPORTED_CONFIG_VERSION
    server: ServerConfig = field(default_factory=ServerConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    platform: PlatformConfig = field(default_factory=PlatformConfig)
    admin: AdminConfig = field(default_factory=AdminConfig)
    path: Optional[str] = None  # Path to the loaded config file

    @classmethod
    def defaults(cls) -> "Config":
        """Return a fully-default Config (no file required)."""
        return cls()

    @classmethod
    def from_dict(cls, raw: dict, path: Optional[str] = None) -> "Config":
        """Construct Config from a parsed YAML dict.

        Merges user-supplied values onto defaults; unknown keys are silently ignored.

        Raises:
            SystemExit(1): On invalid registry.backend value.
        """
        # ── Server ────────────────────────────────────────────────────────────
        server_raw = raw.get("server") or {}
        host = server_raw.get("host", "127.0.0.1")
        port = server_raw.get("port", 8080)
        server = ServerConfig(
            host=host,
            port=port,
            public_url=server_raw.get("public_url", f"http://{host}:{port}").rstrip("/"),
            cors_origins=list(server_raw.get("cors_origins") or []),
        )

        # ── Registry ──────────────────────────────────────────────────────────
        registry_raw = raw.get("registry") or {}
        backend = registry_raw.get("backend", "sqlite")
        if backend not in VALID_REGISTRY_BACKENDS:
            msg = (
                f"CONFIG ERROR: Invalid registry.backend: '{backend}'. "
                f"Supported values: {sorted(VALID_REGISTRY_BACKENDS)}."
            )
            print(msg, file=sys.stderr)
            raise SystemExit(1)
        registry = RegistryConfig(
            backend=backend,
            path=registry_raw.get("path", _DEFAULT_REGISTRY_PATH),
            bcrypt_rounds=registry_raw.get("bcrypt_rounds", DEFAULT_BCRYPT_ROUNDS),
        )

        # ── Platform ──────────────────────────────────────────────────────────
        platform_raw = raw.get("platform") or {}
        platform = PlatformConfig(
            api_version=str(platform_raw.get("api_version", DEFAULT_PLATFORM_API_VERSION)),
            access_tokens=dict(platform_raw.get("access_tokens") or {}),
        )

        # ── Admin ─────────────────────────────────────────────────────────────
        admin_raw = raw.get("admin") or {}
        admin = AdminConfig(keys=dict(admin_raw.get("keys") or {}))

        return cls(
            version=raw.get("version", SUPPORTED_CONFIG_VERSION),
            server=server,
            registry=registry,
            platform=platform,
            admin=admin,
            path=path,
        )


# ─── Config loading ───────────────────────────────────────────────────────────


def load_config(config_path: Optional[str] = None) -> Config:
    """Load and validate PageGate configuration.

    If no file is found at any search path, returns default Config (not an error).
    If a file is found but invalid, writes error to stderr and raises SystemExit(1).

    Environment overrides are applied last, whether or not a file was found.

    Raises:
        SystemExit(1): On YAML parse error, missing ``version`` field, unsupported
                       version, invalid ``registry.backend``, or invalid ``PAGEGATE_PORT``.
    """
    search_paths: list[str] = []
    if config_path:
        search_paths.append(config_path)
    env_config = os.environ.get("PAGEGATE_CONFIG")
    if env_config:
        search_paths.append(env_config)
    search_paths.extend(DEFAULT_CONFIG_PATHS)

    found_path: Optional[str] = None
    for candidate in search_paths:
        expanded = os.path.expanduser(candidate)
        if os.path.isfile(expanded):
            found_path = expanded
            break

    if found_path is None:
        logger.info("No config file found, using defaults", searched=search_paths)
        config = Config.defaults()
        _apply_env_overrides(config)
        return config

    logger.info("Loading config", path=found_path)

    try:
        with open(found_path) as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        msg = (
            f"CONFIG ERROR: Failed to parse {found_path}: {exc}\n"
            "PageGate refuses to start with an invalid config. "
            "Check the YAML syntax and try again."
        )
        print(msg, file=sys.stderr)
        raise SystemExit(1)
    except OSError as exc:
        msg = f"CONFIG ERROR: Could not read {found_path}: {exc}"
        print(msg, file=sys.stderr)
        raise SystemExit(1)

    if not isinstance(raw, dict):
        if raw is None:
            msg = (
                f"CONFIG ERROR: {found_path} is missing the required 'version' field.\n"
                "Add 'version: 1' to the top of your config file."
            )
        else:
            msg = (
                f"CONFIG ERROR: {found_path} is not a valid YAML mapping.\n"
                "The config file must be a YAML dictionary at the top level."
            )
        print(msg, file=sys.stderr)
        raise SystemExit(1)

    version = raw.get("version")
    if version is None:
        msg = (
            f"CONFIG ERROR: {found_path} is missing the required 'version' field.\n"
            "Add 'version: 1' to the top of your config file."
        )
        print(msg, file=sys.stderr)
        raise SystemExit(1)

    if version not in SUPPORTED_VERSIONS:
        msg = (
            f"CONFIG ERROR: Unsupported config version: {version}. "
            f"Supported versions: {sorted(SUPPORTED_VERSIONS)}."
        )
        print(msg, file=sys.stderr)
        raise SystemExit(1)

    config = Config.from_dict(raw, path=found_path)
    _apply_env_overrides(config)

    if config.server.host == "0.0.0.0":
        logger.warning(
            "PageGate is configured to bind on 0.0.0.0 (all interfaces). "
            "Put it behind the storefront's app proxy or a TLS terminator."
        )

    if config.registry.backend == "memory":
        logger.warning("In-memory registry configured, protection records are lost on restart")

    logger.info(
        "Config loaded",
        path=found_path,
        version=config.version,
        registry_backend=config.registry.backend,
        tenants_with_admin_keys=len(config.admin.keys),
    )
    return config


def _apply_env_overrides(config: Config) -> None:
    """Apply environment variable overrides to a Config object in-place.

    Handles:
      PAGEGATE_PORT             — config.server.port (SystemExit(1) if not an integer)
      PAGEGATE_REGISTRY_DB_PATH — config.registry.path
    """
    env_port = os.environ.get("PAGEGATE_PORT")
    if env_port is not None:
        try:
            config.server.port = int(env_port)
        except ValueError:
            msg = (
                f"CONFIG ERROR: PAGEGATE_PORT environment variable is not a valid "
                f"integer: '{env_port}'"
            )
            print(msg, file=sys.stderr)
            raise SystemExit(1)

    env_db_path = os.environ.get("PAGEGATE_REGISTRY_DB_PATH")
    if env_db_path:
        config.registry.path = env_db_path
