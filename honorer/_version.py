"""Version information for honorer.

This file is the single source of truth for version information.
It is imported by the package itself and read by the build backend.
"""

__version__ = "0.1.0"
__version_info__ = tuple(int(i) for i in __version__.split("."))
