"""
Library configuration and server environment definitions.

Every setting can be supplied in code or read from the process
environment:

- ``BLACKFYNN_ENV``: ``local``, ``development`` or ``production``
  (default ``production``).
- ``BLACKFYNN_API_LOC``: base URL of the API when running against the
  ``local`` environment.
- ``BLACKFYNN_TIMEOUT``: request timeout in seconds.
- ``BLACKFYNN_MAX_RETRIES``: attempts made for a transient failure.
- ``BLACKFYNN_S3_ENCRYPTION``: ``aws:kms`` or ``AES256``.
- ``LOG_LEVEL``: log level used by the command line interface.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping, Optional
from urllib.parse import urlparse

from .errors import ConfigError
from .model.aws import S3ServerSideEncryption


DEVELOPMENT_URL = "https://dev.blackfynn.io"
PRODUCTION_URL = "https://api.blackfynn.io"

DEFAULT_TIMEOUT = 30
DEFAULT_MAX_RETRIES = 3

DEFAULT_LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()


class Environment(Enum):
    """The server environment the client talks to."""
    LOCAL = "local"
    DEVELOPMENT = "development"
    PRODUCTION = "production"

    @classmethod
    def from_name(cls, name: str) -> "Environment":
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(e.value for e in cls)
            raise ConfigError(f"Unknown environment {name!r}, expected one of: {valid}")

    def url(self, environ: Optional[Mapping[str, str]] = None) -> str:
        """
        Return the base URL of the API for this environment.

        Raises:
            ConfigError: If ``LOCAL`` is used without a valid
                ``BLACKFYNN_API_LOC``.
        """
        if self is Environment.DEVELOPMENT:
            return DEVELOPMENT_URL
        if self is Environment.PRODUCTION:
            return PRODUCTION_URL

        environ = os.environ if environ is None else environ
        api_loc = environ.get("BLACKFYNN_API_LOC")
        if not api_loc:
            raise ConfigError("BLACKFYNN_API_LOC must be defined")
        parsed = urlparse(api_loc)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"Not a valid url: {api_loc}")
        return api_loc.rstrip("/")


@dataclass
class Config:
    """Configuration options for the Blackfynn client."""
    env: Environment = Environment.PRODUCTION
    s3_server_side_encryption: S3ServerSideEncryption = field(
        default_factory=S3ServerSideEncryption.default
    )
    timeout: float = DEFAULT_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES

    def __post_init__(self):
        if self.timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {self.timeout}")
        if self.max_retries < 1:
            raise ConfigError(f"max_retries must be at least 1, got {self.max_retries}")

    def api_url(self) -> str:
        return self.env.url()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Build a configuration from ``BLACKFYNN_*`` environment variables."""
        environ = os.environ if environ is None else environ

        env = Environment.from_name(environ.get("BLACKFYNN_ENV", "production"))

        try:
            timeout = float(environ.get("BLACKFYNN_TIMEOUT", DEFAULT_TIMEOUT))
            max_retries = int(environ.get("BLACKFYNN_MAX_RETRIES", DEFAULT_MAX_RETRIES))
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        encryption = S3ServerSideEncryption.default()
        if environ.get("BLACKFYNN_S3_ENCRYPTION"):
            try:
                encryption = S3ServerSideEncryption(environ["BLACKFYNN_S3_ENCRYPTION"])
            except ValueError:
                raise ConfigError(
                    f"Unknown S3 encryption {environ['BLACKFYNN_S3_ENCRYPTION']!r}"
                )

        return cls(
            env=env,
            s3_server_side_encryption=encryption,
            timeout=timeout,
            max_retries=max_retries,
        )
