"""Two-party, line-oriented text chat over TCP.

One process listens for a peer (server role), the other connects to it
(client role). After a one-line name exchange, both sides type and receive
chat lines until either of them disconnects, then each side may choose to
start a new session.
"""

from .version import __version__, __version_info__

__all__ = ("__version__", "__version_info__")
