# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Launch configuration for the code-server workbench entrypoint.

Settings come from the process environment (``CODE_PORT``, ``BIND_ADDR``,
``HOME``).  An optional YAML file can pin values or redirect them to other
environment variables with ``!env`` tags::

    code_port: !env CODE_PORT
    bind_addr: 127.0.0.1
    binary: /usr/bin/code-server

Without a file, the entrypoint behaves as if it had read the built-in
mapping in ``_DEFAULT_RAW``; keys a file leaves out are read from that
mapping too, so ``CODE_PORT``, ``BIND_ADDR`` and ``HOME`` still apply.
Every value is optional; unset or empty values fall back to the defaults
below.  Values are kept as strings and
passed to code-server verbatim.
"""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import yaml


logger = logging.getLogger(__name__)

DEFAULT_CODE_PORT = "8888"
DEFAULT_BIND_ADDR = "0.0.0.0"
DEFAULT_HOME = "/opt/app-root/src"
DEFAULT_BINARY = "code-server"

#: Environment variable naming an explicit config file.
CONFIG_PATH_ENV = "WORKBENCH_CONFIG"

#: Config file picked up when ``WORKBENCH_CONFIG`` is not set.
DEFAULT_CONFIG_PATH = Path("/opt/app-root/etc/workbench.yaml")

_KNOWN_KEYS = frozenset({"code_port", "bind_addr", "home", "binary"})


class ConfigError(Exception):
    """Raised when the optional config file cannot be used."""


# ---------------------------------------------------------------------------
# YAML tag placeholders
# ---------------------------------------------------------------------------


class _EnvVar:
    """Placeholder for an unresolved ``!env VAR_NAME`` tag."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name

    def __repr__(self) -> str:
        return f"!env {self.var_name}"


def _env_constructor(loader: yaml.SafeLoader, node: yaml.Node) -> _EnvVar:
    """Handle ``!env VAR_NAME`` in YAML."""
    value = loader.construct_scalar(node)
    return _EnvVar(str(value))


def _make_loader() -> type[yaml.SafeLoader]:
    """Create a YAML loader that understands ``!env``."""

    class EnvLoader(yaml.SafeLoader):
        pass

    EnvLoader.add_constructor("!env", _env_constructor)
    return EnvLoader


#: What the entrypoint reads when no config file is present.
_DEFAULT_RAW: dict[str, object] = {
    "code_port": _EnvVar("CODE_PORT"),
    "bind_addr": _EnvVar("BIND_ADDR"),
    "home": _EnvVar("HOME"),
}


# ---------------------------------------------------------------------------
# Value resolution
# ---------------------------------------------------------------------------


def _raw_resolve(value: object, env: Mapping[str, str]) -> str | None:
    """Resolve an ``_EnvVar`` to its string value, or stringify literals.

    Returns None if the value is None or the env var is unset/empty.
    """
    if isinstance(value, _EnvVar):
        return env.get(value.var_name) or None
    if value is None:
        return None
    return str(value) or None


def _resolve(value: object, env: Mapping[str, str], default: str) -> str:
    resolved = _raw_resolve(value, env)
    if resolved is None:
        return default
    return resolved


# ---------------------------------------------------------------------------
# Launch configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LaunchConfig:
    """Resolved entrypoint settings.

    Attributes:
        code_port: Port code-server listens on.
        bind_addr: Address code-server binds to.
        primary_home: Candidate home directory, normally baked into the
            image as ``HOME``.
        binary: code-server executable, looked up on ``PATH`` when it
            contains no slash.
        source: Config file the values came from, or None when they came
            from the environment alone.
    """

    code_port: str = DEFAULT_CODE_PORT
    bind_addr: str = DEFAULT_BIND_ADDR
    primary_home: Path = Path(DEFAULT_HOME)
    binary: str = DEFAULT_BINARY
    source: Path | None = None

    @property
    def bind_endpoint(self) -> str:
        """The ``--bind-addr`` value, ``<addr>:<port>``."""
        return f"{self.bind_addr}:{self.code_port}"

    @property
    def port_is_valid(self) -> bool:
        """Whether ``code_port`` is an integer in the TCP port range.

        Informational only; the port is always passed through verbatim.
        """
        try:
            port = int(self.code_port)
        except ValueError:
            return False
        return 0 < port < 65536

    @classmethod
    def from_mapping(
        cls,
        raw: Mapping[str, object],
        env: Mapping[str, str],
        source: Path | None = None,
    ) -> "LaunchConfig":
        """Build a config from a raw mapping (YAML document or defaults).

        Keys missing from *raw* take their entry from ``_DEFAULT_RAW``.

        Args:
            raw: Mapping of config keys to literals or ``_EnvVar`` tags.
            env: Environment used to resolve ``!env`` tags.
            source: Where *raw* was read from, for diagnostics.

        Raises:
            ConfigError: If *raw* contains unknown keys.
        """
        unknown = sorted(str(k) for k in raw if k not in _KNOWN_KEYS)
        if unknown:
            raise ConfigError(
                f"Unknown config key(s) in {source or 'defaults'}: "
                f"{', '.join(unknown)}"
            )

        raw = {**_DEFAULT_RAW, **raw}
        return cls(
            code_port=_resolve(raw.get("code_port"), env, DEFAULT_CODE_PORT),
            bind_addr=_resolve(raw.get("bind_addr"), env, DEFAULT_BIND_ADDR),
            primary_home=Path(_resolve(raw.get("home"), env, DEFAULT_HOME)),
            binary=_resolve(raw.get("binary"), env, DEFAULT_BINARY),
            source=source,
        )

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "LaunchConfig":
        """Build a config from environment variables only."""
        if env is None:
            env = os.environ
        return cls.from_mapping(_DEFAULT_RAW, env)

    @classmethod
    def from_yaml(
        cls, path: Path, env: Mapping[str, str] | None = None
    ) -> "LaunchConfig":
        """Load a config file.

        Args:
            path: YAML file to read.
            env: Environment used to resolve ``!env`` tags.

        Raises:
            ConfigError: If the file cannot be read or parsed, or holds
                anything other than a mapping of known keys.
        """
        if env is None:
            env = os.environ

        # Binary mode: PyYAML decodes and reports bad bytes as ReaderError.
        try:
            with path.open("rb") as f:
                raw = yaml.load(f, Loader=_make_loader())
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError(
                f"Config file {path} must contain a mapping, "
                f"got {type(raw).__name__}"
            )

        logger.debug("Loaded config from %s", path)
        return cls.from_mapping(raw, env, source=path)


def get_config_path(env: Mapping[str, str] | None = None) -> Path | None:
    """Return the config file to read, or None to use the environment.

    ``WORKBENCH_CONFIG`` wins when set (the file must then exist).
    Otherwise ``DEFAULT_CONFIG_PATH`` is used if present.
    """
    if env is None:
        env = os.environ
    explicit = env.get(CONFIG_PATH_ENV)
    if explicit:
        return Path(explicit)
    if DEFAULT_CONFIG_PATH.is_file():
        return DEFAULT_CONFIG_PATH
    return None


def load_config(env: Mapping[str, str] | None = None) -> LaunchConfig:
    """Load the launch config from the config file or the environment.

    Raises:
        ConfigError: If a config file is selected but unusable.
    """
    if env is None:
        env = os.environ
    path = get_config_path(env)
    if path is None:
        return LaunchConfig.from_env(env)
    return LaunchConfig.from_yaml(path, env)
