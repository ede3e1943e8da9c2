"""Extension layer — observer plugins via pluggy.

Discovery: entry_points (pip-installed) in the ``fieldctl.plugins`` group.
INVARIANT: Plugin failures are warnings, never errors.
"""

from fieldctl.plugins.hookspecs import hookimpl
from fieldctl.plugins.manager import PluginManager

__all__ = ["PluginManager", "hookimpl"]
