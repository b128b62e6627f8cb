"""Helper class that assembles the configuration of the chat from the
built-in defaults, configuration files and environment variables.
"""

import errno
import os

from importlib import import_module
from logging import Logger
from typing import Any, Dict, Mapping, Optional

__all__ = ("AppConfigurator", "Configuration")

Configuration = Dict[str, Any]


class AppConfigurator:
    """Helper object that loads the configuration of the app from several
    sources, later sources overriding earlier ones:

    - the upper-case variables of the ``.config`` module of the package;

    - the configuration file given explicitly, or the default configuration
      file in the current directory if it exists;

    - the configuration file named by a designated environment variable;

    - environment variables named ``<PREFIX><KEY>`` for every key that is
      already known at that point, e.g. ``DUOCHAT_PORT=6000``.

    Configuration files are Python scripts; only their upper-case variables
    are taken into account.
    """

    def __init__(
        self,
        config: Optional[Configuration] = None,
        *,
        default_filename: Optional[str] = None,
        environment_variable: Optional[str] = None,
        environment_prefix: Optional[str] = None,
        log: Optional[Logger] = None,
        package_name: Optional[str] = None,
    ):
        """Constructor.

        Parameters:
            config: the configuration object to populate; may contain default
                values
            default_filename: name of the configuration file that is loaded
                from the current directory if it exists and no other file was
                given explicitly
            environment_variable: name of the environment variable that may
                hold the name of an additional configuration file to load
            environment_prefix: prefix of the environment variables that
                override individual configuration keys; ``None`` disables
                the overrides
            log: logger to report loaded and missing files to
            package_name: name of the package whose ``.config`` module holds
                the defaults
        """
        self._config = config if config is not None else {}
        self._default_filename = default_filename
        self._environment_variable = environment_variable
        self._environment_prefix = environment_prefix
        self._log = log
        self._package_name = package_name

    def configure(
        self,
        filename: Optional[str] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
    ) -> bool:
        """Loads the configuration from all the sources.

        Parameters:
            filename: name of the configuration file given on the command
                line; it must exist if it is given
            environ: the environment variables to use; defaults to the
                environment of the process

        Returns:
            whether all the mandatory configuration files were loaded
        """
        environ = os.environ if environ is None else environ

        self._load_defaults()

        sources = []
        if filename:
            sources.append((filename, True))
        elif self._default_filename:
            sources.append((self._default_filename, False))

        if self._environment_variable:
            sources.append((environ.get(self._environment_variable), True))

        success = True
        for source, mandatory in sources:
            if source and not self._load_file(source, mandatory):
                success = False

        if self._environment_prefix:
            self._load_environment_overrides(environ)

        return success

    @property
    def result(self) -> Configuration:
        """The configuration assembled so far."""
        return self._config

    def _load_defaults(self) -> None:
        if not self._package_name:
            return

        try:
            defaults = import_module(".config", self._package_name)
        except ModuleNotFoundError:
            return

        self._update({key: getattr(defaults, key) for key in dir(defaults)})

    def _load_environment_overrides(self, environ: Mapping[str, str]) -> None:
        """Overrides the known configuration keys from environment variables.

        Values that look like integers are converted to integers; empty
        values are converted to ``None``.
        """
        for key in list(self._config):
            value = environ.get(f"{self._environment_prefix}{key}")
            if value is None:
                continue

            if not value:
                self._config[key] = None
            else:
                try:
                    self._config[key] = int(value)
                except ValueError:
                    self._config[key] = value

    def _load_file(self, filename: str, mandatory: bool) -> bool:
        """Loads configuration settings from a Python script.

        Parameters:
            filename: name of the file; relative paths are resolved from the
                current directory
            mandatory: whether a missing file counts as a failure

        Returns:
            whether the file was loaded, or it was missing but not mandatory
        """
        path = os.path.abspath(filename)

        variables = {}
        try:
            with open(path, mode="rb") as fp:
                exec(compile(fp.read(), path, "exec"), variables)
        except OSError as ex:
            if ex.errno not in (errno.ENOENT, errno.EISDIR, errno.ENOTDIR):
                raise
            if mandatory and self._log:
                self._log.warning(f"Cannot load configuration from {filename!r}")
            return not mandatory

        self._update(variables)
        if self._log:
            self._log.info(f"Loaded configuration from {filename!r}")

        return True

    def _update(self, variables: Mapping[str, Any]) -> None:
        for key, value in variables.items():
            if key.isupper():
                self._config[key] = value
