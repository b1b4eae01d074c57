# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Credential loading for callers that keep Postal settings outside code.

The client itself never reads the environment; this helper is used by the
command line tool and by applications that want the same convention.

Example:
    Configuration file format (postal.ini)::

        [postal]
        key = 8Fx2...secret
        url = postal.example.com

    Loading credentials::

        credentials = load_credentials("/etc/postal/postal.ini")
        client = PostalClient(credentials=credentials)
"""

from __future__ import annotations

import configparser
import os
from pathlib import Path

from .client import Credentials
from .exceptions import ConfigurationError
from .logger import get_logger

ENV_API_KEY = "POSTAL_API_KEY"
ENV_URL = "POSTAL_URL"
CONFIG_SECTION = "postal"

logger = get_logger("config_loader")


def load_credentials(
    config_path: str | None = None,
    key: str | None = None,
    url: str | None = None,
) -> Credentials:
    """Resolve Postal credentials.

    Priority: explicit arguments > config file > environment variables.

    Environment variables:
        POSTAL_API_KEY: Server API key
        POSTAL_URL: Server host or URL

    Args:
        config_path: Optional path to an INI file with a ``[postal]`` section.
        key: Explicit API key.
        url: Explicit server URL.

    Returns:
        Credentials built from the first non-empty value of each field.

    Raises:
        ConfigurationError: If the key or URL cannot be resolved, or the
            config file cannot be parsed.
    """
    values: dict[str, str | None] = {
        "key": os.environ.get(ENV_API_KEY),
        "url": os.environ.get(ENV_URL),
    }

    if config_path:
        path = Path(config_path)
        if path.exists():
            config = configparser.ConfigParser()
            try:
                config.read(path)
            except configparser.Error as exc:
                raise ConfigurationError(f"Cannot parse {config_path}: {exc}") from exc
            if config.has_section(CONFIG_SECTION):
                for name in ("key", "url"):
                    value = config.get(CONFIG_SECTION, name, fallback="").strip()
                    if value:
                        values[name] = value
            else:
                logger.warning("No [%s] section in %s", CONFIG_SECTION, config_path)
        else:
            logger.warning("Config file %s not found, using environment", config_path)

    if key:
        values["key"] = key
    if url:
        values["url"] = url

    if not values["key"]:
        raise ConfigurationError(f"Postal API key not configured (set {ENV_API_KEY})")
    if not values["url"]:
        raise ConfigurationError(f"Postal server URL not configured (set {ENV_URL})")
    return Credentials(key=values["key"], url=values["url"])
