"""Application objects for the two roles of the chat.

Both roles run the same loop: obtain an open stream to a peer, run a chat
session over it, then ask the user whether to start another session. The
server obtains its streams by accepting connections on a listening port;
the client obtains them by connecting to the server.
"""

from abc import ABCMeta, abstractmethod
from contextlib import asynccontextmanager
from trio.abc import Stream
from typing import AsyncIterator, Awaitable, Callable, Optional

from .configurator import AppConfigurator, Configuration
from .connections import ConnectionEstablishmentError, PeerListener, connect_to_peer
from .console import ConsoleDisplay, ConsoleInput, Display, InputResult, InputSource
from .logger import log as base_log
from .model.config import SessionConfig
from .session import ChatSession

__all__ = ("ChatApp", "ClientApp", "ServerApp", "is_affirmative")

PACKAGE_NAME = __name__.rpartition(".")[0]

log = base_log.getChild("app")

#: Type of async functions that return an open stream to the next peer
Connector = Callable[[], Awaitable[Stream]]


def is_affirmative(answer: InputResult) -> bool:
    """Returns whether the given answer to the reconnect prompt means that
    the user wants to start a new session.
    """
    return answer in ("y", "Y")


class ChatApp(metaclass=ABCMeta):
    """Base class for the application objects of the two roles."""

    role: str
    """Short name of the role; also used as the name of the task executors."""

    reconnect_prompt: str
    """Question to ask the user after a session has ended."""

    name_key: str
    """Configuration key of the default display name of the role."""

    host_key: str
    """Configuration key of the default host of the role."""

    config: Configuration
    """The configuration of the app, loaded in `prepare()`."""

    session_config: Optional[SessionConfig]
    """The configuration of the sessions, set in `configure()`."""

    def __init__(
        self,
        *,
        input: Optional[InputSource] = None,
        display: Optional[Display] = None,
    ):
        """Constructor.

        Parameters:
            input: the source of the lines typed by the user; defaults to the
                standard input
            display: the display to show messages on; defaults to the
                standard output
        """
        self.config = {}
        self.session_config = None
        self.input = input or ConsoleInput()
        self.display = display or ConsoleDisplay()

    @property
    def default_name(self) -> Optional[str]:
        """The display name of the local user according to the configuration,
        or ``None`` if the configuration does not specify one.
        """
        return self.config.get(self.name_key) or None

    def configure(
        self,
        *,
        name: Optional[str] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
    ) -> SessionConfig:
        """Creates the configuration of the sessions from the loaded
        configuration, overridden by the given arguments.

        Raises:
            TypeError: if some of the settings have the wrong type
            ValueError: if some of the settings are invalid
        """
        if name is None:
            name = self.default_name
        if name is None:
            raise ValueError("name of the local user is not set")
        if host is None:
            host = self.config.get(self.host_key) or ""
        if port is None:
            port = self.config.get("PORT")

        self.session_config = SessionConfig(name=name, host=host, port=port)
        return self.session_config

    def prepare(self, config_file: Optional[str] = None) -> Optional[int]:
        """Loads the configuration of the app.

        Parameters:
            config_file: name of the configuration file given on the command
                line

        Returns:
            an exit code if the app should terminate, ``None`` otherwise
        """
        configurator = AppConfigurator(
            self.config,
            default_filename="duochat.cfg",
            environment_variable="DUOCHAT_SETTINGS",
            environment_prefix="DUOCHAT_",
            log=log,
            package_name=PACKAGE_NAME,
        )
        if not configurator.configure(config_file):
            return 1

    async def run(self) -> int:
        """Runs chat sessions until the user declines to start a new one.

        Returns:
            the exit code of the app: 0 if the user chose to quit, 1 if a
            connection could not be established
        """
        if self.session_config is None:
            raise RuntimeError("app is not configured yet")

        try:
            async with self._create_connector() as connect:
                await self._run_sessions(connect)
        except ConnectionEstablishmentError as ex:
            log.info(ex.user_message, extra={"semantics": "failure"})
            log.debug("Connection could not be established", exc_info=ex)
            self.display.show_text(ex.user_message)
            return 1

        log.debug("End of application")
        return 0

    async def _ask_to_reconnect(self) -> bool:
        answer = await self.input.read_line(self.reconnect_prompt)
        return is_affirmative(answer)

    @abstractmethod
    def _create_connector(self) -> AsyncIterator[Connector]:
        """Async context manager that yields an async function that returns
        an open stream to the next peer whenever it is called.
        """
        raise NotImplementedError

    async def _run_sessions(self, connect: Connector) -> None:
        while True:
            stream = await connect()

            session = ChatSession(
                self.session_config.name,
                stream,
                input=self.input,
                display=self.display,
                executor_name=self.role,
            )
            result = await session.run()

            self.display.show_text(
                f"Connection with {result.peer_name or 'unknown peer'} closed."
            )

            if not await self._ask_to_reconnect():
                log.debug("User chose not to reconnect")
                break


class ClientApp(ChatApp):
    """Application object of the client role that connects to a server."""

    role = "client"
    reconnect_prompt = "Connect to another server? y/N: "
    name_key = "CLIENT_NAME"
    host_key = "HOST"

    @property
    def connect_timeout(self) -> Optional[float]:
        """Number of seconds to wait for a connection to be established;
        ``None`` means no limit.
        """
        return self.config.get("CONNECT_TIMEOUT") or None

    @asynccontextmanager
    async def _create_connector(self) -> AsyncIterator[Connector]:
        host, port = self.session_config.host, self.session_config.port

        async def connect() -> Stream:
            self.display.show_text(f"Connecting to {host}:{port}...")
            return await connect_to_peer(host, port, timeout=self.connect_timeout)

        yield connect


class ServerApp(ChatApp):
    """Application object of the server role that waits for clients on a
    listening port, one client at a time.
    """

    role = "server"
    reconnect_prompt = "Wait for another client? y/N: "
    name_key = "SERVER_NAME"
    host_key = "BIND_HOST"

    @asynccontextmanager
    async def _create_connector(self) -> AsyncIterator[Connector]:
        host, port = self.session_config.host, self.session_config.port

        async with PeerListener(host, port) as listener:

            async def accept() -> Stream:
                self.display.show_text(
                    f"Waiting for a client on port {listener.port}..."
                )
                return await listener.accept()

            yield accept
