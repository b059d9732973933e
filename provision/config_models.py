# provision/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for application configuration.

This module defines two kinds of settings:

- AppSettings: non-interactive runtime settings (host paths, download URLs,
  feature toggles), loaded from defaults, environment (WPS_ prefix), the YAML
  config file and the command line.
- SiteParameters: the operator-facing site parameters (database, domain,
  PHP version, web root, MariaDB root password). These are resolved exactly
  once by the parameter resolver and are frozen afterwards.
"""

import re
from pathlib import Path
from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Site parameter defaults (can be overridden by CLI/YAML/env/prompt) ---
DB_NAME_DEFAULT: str = "wordpress_db"
DB_USER_DEFAULT: str = "wp_user"
# IMPORTANT: Operators are warned whenever this value ends up being used.
DB_PASSWORD_DEFAULT: str = "wp_pass_123"
DOMAIN_DEFAULT: str = "example.com"
EMAIL_DEFAULT: str = "admin@example.com"
PHP_VERSION_DEFAULT: str = "8.0"
WEB_ROOT_DEFAULT: str = "/var/www/html"

LOG_FILE_DEFAULT: str = "/var/log/wordpress_install.log"
LOG_PREFIX_DEFAULT: str = ""

SYMBOLS_DEFAULT: Dict[str, str] = {
    "success": "✅",
    "error": "❌",
    "warning": "⚠️",
    "info": "ℹ️",
    "step": "➡️",
    "gear": "⚙️",
    "package": "📦",
    "rocket": "🚀",
    "sparkles": "✨",
    "critical": "🔥",
    "debug": "🐛",
    "lock": "🔒",
}

_HOSTNAME_RE = re.compile(
    r"^(?=.{1,253}$)(?!-)[A-Za-z0-9-]{1,63}(?<!-)"
    r"(\.(?!-)[A-Za-z0-9-]{1,63}(?<!-))*$"
)
# Characters that would break out of an nginx directive.
_UNSAFE_PATH_CHARS = re.compile(r"[\s;{}'\"]")


class PathSettings(BaseModel):
    """Host filesystem locations used by the provisioning steps."""

    sites_available: Path = Field(
        default=Path("/etc/nginx/sites-available"),
        description="Directory holding Nginx virtual host definitions.",
    )
    sites_enabled: Path = Field(
        default=Path("/etc/nginx/sites-enabled"),
        description="Directory of symlinks to enabled virtual hosts.",
    )
    php_fpm_socket_dir: Path = Field(
        default=Path("/var/run/php"),
        description="Directory containing php<version>-fpm.sock.",
    )
    os_release_file: Path = Field(
        default=Path("/etc/os-release"),
        description="File used to detect the distribution and version.",
    )
    log_file: Path = Field(
        default=Path(LOG_FILE_DEFAULT),
        description="Append-only audit log.",
    )
    download_dir: Path = Field(
        default=Path("/tmp"),
        description="Scratch directory for the WordPress archive.",
    )
    apt_sources_dir: Path = Field(
        default=Path("/etc/apt/sources.list.d"),
        description="Directory receiving deb822 .sources files.",
    )


class WordPressSettings(BaseModel):
    """Where WordPress and its secret material come from."""

    download_url: str = Field(default="https://wordpress.org/latest.tar.gz")
    checksum_url: str = Field(
        default="https://wordpress.org/latest.tar.gz.sha1"
    )
    verify_checksum: bool = Field(
        default=True,
        description="Verify the archive against the published SHA-1.",
    )
    salt_api_url: str = Field(
        default="https://api.wordpress.org/secret-key/1.1/salt/"
    )
    http_timeout: int = Field(
        default=60, description="Timeout in seconds for HTTP fetches."
    )
    web_user: str = Field(default="www-data")
    web_group: str = Field(default="www-data")


class CertbotSettings(BaseModel):
    """Certbot (Let's Encrypt) options."""

    enabled: bool = Field(
        default=True,
        description="Request a TLS certificate and enable renewal.",
    )
    use_hsts: bool = Field(default=True)
    redirect: bool = Field(
        default=True, description="Redirect HTTP to HTTPS."
    )
    include_www: bool = Field(
        default=True, description="Also certify www.<domain>."
    )
    renewal_timer: str = Field(default="certbot.timer")


class FirewallSettings(BaseModel):
    """UFW options. The firewall step is skipped when ufw is absent."""

    enabled: bool = Field(default=True)
    rules: List[str] = Field(
        default_factory=lambda: ["Nginx Full", "OpenSSH"],
        description="Application profiles passed to 'ufw allow'.",
    )


class MariaDBSettings(BaseModel):
    """MariaDB client options."""

    client_command: str = Field(default="mysql")
    charset: str = Field(default="utf8mb4")
    collation: str = Field(default="utf8mb4_unicode_ci")


class AppSettings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="WPS_", env_nested_delimiter="__", extra="ignore"
    )

    log_prefix: str = Field(
        default=LOG_PREFIX_DEFAULT,
        description="Prefix for console log messages.",
    )
    paths: PathSettings = Field(default_factory=PathSettings)
    wordpress: WordPressSettings = Field(default_factory=WordPressSettings)
    certbot: CertbotSettings = Field(default_factory=CertbotSettings)
    firewall: FirewallSettings = Field(default_factory=FirewallSettings)
    mariadb: MariaDBSettings = Field(default_factory=MariaDBSettings)

    symbols: Dict[str, str] = Field(
        default_factory=lambda: dict(SYMBOLS_DEFAULT)
    )


class SiteParameters(BaseModel):
    """
    Resolved operator parameters for one WordPress site.

    Frozen: once the resolver has produced an instance no step can change it.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    db_name: str = Field(
        default=DB_NAME_DEFAULT, pattern=r"^[A-Za-z0-9_]{1,64}$"
    )
    db_user: str = Field(
        default=DB_USER_DEFAULT, pattern=r"^[A-Za-z0-9_]{1,80}$"
    )
    db_password: str = Field(default=DB_PASSWORD_DEFAULT, min_length=1)
    domain: str = Field(default=DOMAIN_DEFAULT)
    email: str = Field(default=EMAIL_DEFAULT, pattern=r"^[^@\s]+@[^@\s]+$")
    php_version: str = Field(
        default=PHP_VERSION_DEFAULT, pattern=r"^\d+\.\d+$"
    )
    web_root: Path = Field(default=Path(WEB_ROOT_DEFAULT))
    mariadb_root_password: SecretStr = Field(
        default=SecretStr(""), exclude=True
    )

    @field_validator("domain")
    @classmethod
    def _validate_domain(cls, value: str) -> str:
        value = value.strip().lower().rstrip(".")
        if not _HOSTNAME_RE.match(value):
            raise ValueError(f"'{value}' is not a valid host name")
        return value

    @field_validator("web_root")
    @classmethod
    def _validate_web_root(cls, value: Path) -> Path:
        if not value.is_absolute():
            raise ValueError("web root must be an absolute path")
        if _UNSAFE_PATH_CHARS.search(str(value)):
            raise ValueError(
                "web root must not contain whitespace, quotes, ';', '{' or '}'"
            )
        return value

    @property
    def www_domain(self) -> str:
        return f"www.{self.domain}"

    @property
    def uses_insecure_db_password(self) -> bool:
        return self.db_password == DB_PASSWORD_DEFAULT
