"""Configuration for the JSS API client.

Two kinds of configuration live here:

- ``ConnectionOptions``: the explicit, per-call options a caller passes to
  ``APIConnection.connect()``.
- ``JSSConfig``: persisted defaults, read from YAML configuration files and
  ``JSS_*`` environment variables (a ``.env`` file is honoured).

Precedence between these and the other sources is resolved in
``jss_client.transport``.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import InvalidDataError

logger = logging.getLogger(__name__)

GLOBAL_CONF = Path("/etc/jss_client.conf")
USER_CONF = Path("~/.jss_client.conf").expanduser()
ENV_PREFIX = "JSS_"


class PasswordPrompt(BaseModel):
    """Ask for the password interactively when connecting."""

    model_config = ConfigDict(frozen=True)


class StdinPassword(BaseModel):
    """Read the password from a line of an input stream (1-based)."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(default=1, ge=1, description="Line number holding the password")


PROMPT = PasswordPrompt()

PasswordSource = Union[str, PasswordPrompt, StdinPassword]


class ConnectionOptions(BaseModel):
    """Explicit options for a connection. Unset fields fall back to other sources."""

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, description="Display name of the connection")
    server: Optional[str] = Field(default=None, description="Hostname of the JSS")
    server_path: Optional[str] = Field(
        default=None, description="Path prefix when the JSS is not at the web root"
    )
    port: Optional[int] = Field(default=None, description="TCP port of the JSS")
    user: Optional[str] = Field(default=None, description="API username")
    pw: Optional[PasswordSource] = Field(
        default=None, description="Password, PROMPT, or StdinPassword(line=n)"
    )
    use_ssl: Optional[bool] = Field(default=None, description="Force SSL on or off")
    verify_cert: Optional[bool] = Field(
        default=None, description="Verify the server's TLS certificate"
    )
    ssl_version: Optional[str] = Field(
        default=None, description="Minimum TLS version, e.g. 'TLSv1_2'"
    )
    timeout: Optional[float] = Field(default=None, gt=0, description="Total request timeout")
    open_timeout: Optional[float] = Field(
        default=None, gt=0, description="Connection open timeout"
    )

    @field_validator("port", mode="before")
    @classmethod
    def _empty_port_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class JSSConfig(BaseModel):
    """Persisted connection defaults."""

    model_config = ConfigDict(extra="ignore")

    api_server_name: Optional[str] = None
    api_server_port: Optional[int] = None
    api_server_path: Optional[str] = None
    api_username: Optional[str] = None
    api_timeout: Optional[float] = None
    api_timeout_open: Optional[float] = None
    api_ssl_version: Optional[str] = None
    api_verify_cert: Optional[bool] = None


def _read_config_file(path: Path) -> Dict[str, Any]:
    """Read one YAML configuration file. Missing files are skipped."""
    if not path.is_file():
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise InvalidDataError(f"Could not read configuration file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidDataError(f"Configuration file {path} must contain a mapping")

    known = {}
    for key, value in data.items():
        if key in JSSConfig.model_fields:
            known[key] = value
        else:
            logger.warning(f"Ignoring unknown key '{key}' in {path}")
    return known


def load_config(paths: Optional[Iterable[Union[str, Path]]] = None) -> JSSConfig:
    """Load persisted configuration.

    Files are read in order (later files override earlier ones), then
    ``JSS_<FIELD>`` environment variables override both.

    Args:
        paths: Configuration files to read. Defaults to the global file
            followed by the user file.

    Returns:
        JSSConfig with whatever values were found

    Raises:
        InvalidDataError: If a file is unreadable or a value is invalid
    """
    load_dotenv()

    if paths is None:
        paths = (GLOBAL_CONF, USER_CONF)

    values: Dict[str, Any] = {}
    for path in paths:
        values.update(_read_config_file(Path(path).expanduser()))

    for field in JSSConfig.model_fields:
        env_value = os.getenv(f"{ENV_PREFIX}{field.upper()}")
        if env_value:
            values[field] = env_value

    try:
        return JSSConfig(**values)
    except ValidationError as e:
        raise InvalidDataError(f"Invalid configuration: {e}") from e


_config: Optional[JSSConfig] = None


def get_config(reload: bool = False) -> JSSConfig:
    """Return the process-wide configuration, loading it on first use."""
    global _config
    if _config is None or reload:
        _config = load_config()
    return _config
