"""YAML configuration for connections and table definitions.

A profile looks like::

    batch_size: 500
    connections:
      warehouse:
        url: postgresql+psycopg2://etl:${PG_PASSWORD}@${PG_HOST|localhost}/dwh
        max_login_attempts: 5
      scratch:
        url: sqlite:///scratch.db

``${VAR}`` is replaced by the environment variable ``VAR`` and
``${VAR|default}`` falls back to ``default`` when it is unset.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from rowflow.connections.connection_string import ConnectionString
from rowflow.connections.manager import DbConnectionManager, connection_manager_for
from rowflow.connections.retry import RetryConfig
from rowflow.dataflow.destinations import DEFAULT_BATCH_SIZE
from rowflow.dataflow.stage import DEFAULT_BUFFER_SIZE
from rowflow.logging import get_logger
from rowflow.schema.definitions import TableDefinition

logger = get_logger(__name__)

DEFAULT_MAX_LOGIN_ATTEMPTS = 3

_VARIABLE_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?:\|([^}]*))?\}")


def substitute_env_variables(value: Any, env: Optional[Dict[str, str]] = None) -> Any:
    """Replace ``${VAR}`` references in strings, lists and dicts.

    Raises:
        ValueError: If a variable without default is not set
    """
    env = os.environ if env is None else env
    if isinstance(value, dict):
        return {k: substitute_env_variables(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [substitute_env_variables(v, env) for v in value]
    if not isinstance(value, str):
        return value

    def replace(match: "re.Match") -> str:
        name, default = match.group(1), match.group(2)
        if name in env:
            return env[name]
        if default is not None:
            return default
        raise ValueError(f"Environment variable '{name}' is not set")

    return _VARIABLE_PATTERN.sub(replace, value)


@dataclass
class ConnectionProfile:
    """A named connection of a profile."""

    name: str
    url: str
    max_login_attempts: int = DEFAULT_MAX_LOGIN_ATTEMPTS
    use_parameter_query: bool = True

    @classmethod
    def from_dict(
        cls, name: str, config: Any, default_login_attempts: int = DEFAULT_MAX_LOGIN_ATTEMPTS
    ) -> "ConnectionProfile":
        """Build a profile from either a URL string or a mapping with ``url``.

        Raises:
            ValueError: If the configuration has no URL
        """
        if isinstance(config, str):
            config = {"url": config}
        if not isinstance(config, dict):
            raise ValueError(f"Connection '{name}' configuration must be a string or a dictionary")
        url = config.get("url")
        if not url:
            raise ValueError(f"Connection '{name}' missing required 'url' field")
        return cls(
            name=name,
            url=url,
            max_login_attempts=int(config.get("max_login_attempts", default_login_attempts)),
            use_parameter_query=bool(config.get("use_parameter_query", True)),
        )

    @property
    def connection_string(self) -> ConnectionString:
        return ConnectionString(self.url)

    def create_manager(self, retry_config: Optional[RetryConfig] = None) -> DbConnectionManager:
        return connection_manager_for(
            self.connection_string,
            retry_config=retry_config,
            max_login_attempts=self.max_login_attempts,
            use_parameter_query=self.use_parameter_query,
        )


@dataclass
class Profile:
    """Connections and dataflow defaults loaded from one YAML file."""

    connections: Dict[str, ConnectionProfile] = field(default_factory=dict)
    batch_size: int = DEFAULT_BATCH_SIZE
    buffer_size: int = DEFAULT_BUFFER_SIZE
    max_login_attempts: int = DEFAULT_MAX_LOGIN_ATTEMPTS

    def get_connection(self, name: str) -> ConnectionProfile:
        """Return the connection called ``name``.

        Raises:
            KeyError: If the profile has no such connection
        """
        if name not in self.connections:
            available = ", ".join(sorted(self.connections)) or "none"
            raise KeyError(f"Connection '{name}' not found in profile (available: {available})")
        return self.connections[name]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        max_login_attempts = int(data.get("max_login_attempts", DEFAULT_MAX_LOGIN_ATTEMPTS))
        connections_config = data.get("connections") or {}
        if not isinstance(connections_config, dict):
            raise ValueError("'connections' must be a dictionary")
        connections = {
            name: ConnectionProfile.from_dict(name, config, max_login_attempts)
            for name, config in connections_config.items()
        }
        profile = cls(
            connections=connections,
            batch_size=int(data.get("batch_size", DEFAULT_BATCH_SIZE)),
            buffer_size=int(data.get("buffer_size", DEFAULT_BUFFER_SIZE)),
            max_login_attempts=max_login_attempts,
        )
        if profile.batch_size < 1 or profile.buffer_size < 1:
            raise ValueError("'batch_size' and 'buffer_size' must be positive")
        return profile


def _load_yaml(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Configuration file not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in '{path}': {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"'{path}' must contain a YAML mapping")
    return substitute_env_variables(data)


def load_profile(path: str) -> Profile:
    """Load a connection profile.

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ValueError: If the YAML is invalid or a variable is missing
    """
    logger.debug("Loading profile from '%s'", path)
    profile = Profile.from_dict(_load_yaml(path))
    logger.debug("Loaded %d connections from '%s'", len(profile.connections), path)
    return profile


def load_table_definition(path: str) -> TableDefinition:
    """Load a table definition (``name`` plus ``columns``) from YAML."""
    return TableDefinition.from_dict(_load_yaml(path))
