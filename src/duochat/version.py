"""Version information for duochat."""

__version_info__ = (1, 0, 0)
__version__ = ".".join(str(part) for part in __version_info__)
