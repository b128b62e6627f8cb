"""Default configuration for duochat.

This script will be evaluated first when duochat attempts to load its
configuration. Configuration files may import variables from this module
with `from duochat.config import SOMETHING`, and may also modify them if the
variables are mutable. For instance, to connect to a different machine by
default, create a configuration file containing this:

    HOST = "chat.example.com"
    CLIENT_NAME = "Alice"
"""

# Address of the server that the client connects to
HOST = "localhost"

# Address that the server binds to; empty string means all interfaces
BIND_HOST = ""

# Port on which the server listens and to which the client connects
PORT = 5000

# Name announced by the server to its clients
SERVER_NAME = "Server"

# Name announced by the client to the server; the user is asked for a name
# when it is not set
CLIENT_NAME = None

# Number of seconds that the client waits for the connection to the server
# to be established
CONNECT_TIMEOUT = 10
