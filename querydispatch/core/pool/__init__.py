"""
DB connections and drivers for endpoints.

No pooling across calls: every dispatch opens and closes its own connections.
"""

from .connect import connect, cursor_to_dicts, execute
from .drivers import DBAPIDriver, Driver, get_driver, register_driver, unregister_driver
from .health import health_check

__all__ = [
    "connect",
    "execute",
    "cursor_to_dicts",
    "health_check",
    "Driver",
    "DBAPIDriver",
    "get_driver",
    "register_driver",
    "unregister_driver",
]
