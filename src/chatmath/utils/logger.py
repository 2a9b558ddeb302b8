"""Package loggers for chatmath.

Every module logs under the ``chatmath`` namespace: render fallbacks from
``chatmath.builder`` and runtime start-up from ``chatmath.render``, both at
DEBUG. The library never attaches handlers or sets levels; enable output in
the host bot, e.g.::

    logging.getLogger("chatmath").setLevel(logging.DEBUG)

"""

from __future__ import annotations

import logging

PACKAGE_LOGGER = "chatmath"


def get_logger(name: str) -> logging.Logger:
    """Return the logger for ``name`` under the ``chatmath`` namespace.

    Module names already inside the package are used as-is.

    Example:
        >>> get_logger("plugins.discord").name
        'chatmath.plugins.discord'
        >>> get_logger("chatmath.builder").name
        'chatmath.builder'
    """
    if name != PACKAGE_LOGGER and not name.startswith(f"{PACKAGE_LOGGER}."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
