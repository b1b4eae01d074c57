# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logging helper for the Postal client.

Handlers and levels are left to the host application; the library only
asks for named loggers.

Example::

    from postal_client.logger import get_logger

    logger = get_logger("client")
    logger.debug("POST %s", url)
"""

import logging

ROOT_LOGGER_NAME = "postal_client"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under the ``postal_client`` namespace.

    Args:
        name: Child logger name, e.g. ``"client"``. None returns the
            package root logger.

    Returns:
        A ``logging.Logger`` instance.
    """
    if not name:
        return logging.getLogger(ROOT_LOGGER_NAME)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
