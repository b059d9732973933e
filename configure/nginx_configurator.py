# configure/nginx_configurator.py
# -*- coding: utf-8 -*-
"""
Handles configuration of the Nginx virtual host serving WordPress.

The vhost is rendered from a placeholder template, written to
``<sites_available>/<domain>.conf``, enabled by symlink and validated with
``nginx -t``. When validation fails the previous vhost, its link and the
default site link are put back before the step fails, so Nginx is never
left with a configuration it refuses to load.
"""

import logging
import os
from pathlib import Path
from typing import NamedTuple, Optional, Union

from common.command_utils import CommandExecutor, get_symbols, log_message
from common.file_utils import backup_file, write_text_file
from common.system_utils import systemd_reload
from installer.php_installer import php_fpm_socket_path
from provision.config_models import AppSettings, SiteParameters
from provision.exceptions import CommandError
from provision.templates import PlaceholderTemplate

module_logger = logging.getLogger(__name__)

DEFAULT_SITE_NAME = "default"

NGINX_VHOST_TEMPLATE = PlaceholderTemplate(
    "nginx-vhost",
    r"""server {
    listen 80;
    listen [::]:80;

    server_name {{domain}} www.{{domain}};

    root {{web_root}};
    index index.php index.html index.htm;

    access_log /var/log/nginx/{{domain}}_access.log;
    error_log /var/log/nginx/{{domain}}_error.log;

    client_max_body_size 100M;

    # Let's Encrypt HTTP-01 challenges must stay reachable.
    location ^~ /.well-known/acme-challenge/ {
        allow all;
        try_files $uri =404;
    }

    location / {
        try_files $uri $uri/ /index.php?$args;
    }

    location ~ /\.ht {
        deny all;
    }

    location ~ /\.git {
        deny all;
    }

    location ~* /wp-config.php {
        deny all;
    }

    location ~ /\. {
        deny all;
    }

    location ~ \.php$ {
        include snippets/fastcgi-php.conf;
        fastcgi_pass unix:{{php_socket}};
    }
}
""",
    fields=("domain", "web_root", "php_socket"),
)


class _LinkState(NamedTuple):
    """What occupied a sites-enabled entry before we touched it."""

    symlink_target: Optional[str] = None
    file_content: Optional[bytes] = None

    @property
    def existed(self) -> bool:
        return self.symlink_target is not None or self.file_content is not None


def _capture_link_state(path: Path) -> _LinkState:
    if path.is_symlink():
        return _LinkState(symlink_target=os.readlink(path))
    if path.is_file():
        return _LinkState(file_content=path.read_bytes())
    return _LinkState()


def _restore_link_state(path: Path, state: _LinkState) -> None:
    if os.path.lexists(path):
        path.unlink()
    if state.symlink_target is not None:
        os.symlink(state.symlink_target, path)
    elif state.file_content is not None:
        path.write_bytes(state.file_content)


def vhost_path(app_settings: AppSettings, domain: str) -> Path:
    return app_settings.paths.sites_available / f"{domain}.conf"


def render_vhost(
    domain: str, web_root: Union[str, Path], php_socket: Union[str, Path]
) -> str:
    return NGINX_VHOST_TEMPLATE.render(
        {"domain": domain, "web_root": str(web_root), "php_socket": str(php_socket)}
    )


def configure_nginx(
    executor: CommandExecutor,
    params: SiteParameters,
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    logger_to_use = current_logger if current_logger else module_logger
    symbols = get_symbols(app_settings)
    paths = app_settings.paths

    conf_path = vhost_path(app_settings, params.domain)
    enabled_link = paths.sites_enabled / conf_path.name
    default_link = paths.sites_enabled / DEFAULT_SITE_NAME

    log_message(
        f"{symbols.get('step', '➡️')} Configuring Nginx for domain {params.domain}...",
        "info",
        logger_to_use,
        app_settings,
    )
    content = render_vhost(
        params.domain,
        params.web_root,
        php_fpm_socket_path(app_settings, params.php_version),
    )

    previous_vhost = conf_path.read_text(encoding="utf-8") if conf_path.is_file() else None
    previous_link = _capture_link_state(enabled_link)
    previous_default = _capture_link_state(default_link)
    backup_file(conf_path, app_settings, logger_to_use)

    write_text_file(conf_path, content, app_settings, mode=0o644, current_logger=logger_to_use)
    paths.sites_enabled.mkdir(parents=True, exist_ok=True)
    if os.path.lexists(enabled_link):
        enabled_link.unlink()
    os.symlink(conf_path, enabled_link)
    log_message(
        f"{symbols.get('success', '✅')} Enabled Nginx site '{conf_path.name}'.",
        "info",
        logger_to_use,
        app_settings,
    )
    if previous_default.existed:
        default_link.unlink()
        log_message(
            f"{symbols.get('info', 'ℹ️')} Default Nginx site disabled.",
            "info",
            logger_to_use,
            app_settings,
        )

    try:
        executor.run("nginx", ["-t"])
    except CommandError as e:
        if previous_vhost is None:
            conf_path.unlink()
        else:
            write_text_file(conf_path, previous_vhost, app_settings, mode=0o644, current_logger=logger_to_use)
        _restore_link_state(enabled_link, previous_link)
        _restore_link_state(default_link, previous_default)
        log_message(
            f"{symbols.get('warning', '⚠️')} Restored the previous Nginx site configuration.",
            "warning",
            logger_to_use,
            app_settings,
        )
        raise RuntimeError(f"Nginx configuration test failed: {e}") from e

    log_message(
        f"{symbols.get('success', '✅')} Nginx configuration test successful.",
        "info",
        logger_to_use,
        app_settings,
    )
    systemd_reload(executor, "nginx", app_settings, logger_to_use)
    log_message(
        f"{symbols.get('success', '✅')} Nginx configured for domain {params.domain}.",
        "success",
        logger_to_use,
        app_settings,
    )
