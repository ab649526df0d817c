"""Configuration management using Pydantic settings.

Two-layer configuration system:
1. Environment: Loads raw values from environment variables (UPPER_CASE)
2. Settings: Clean application settings with lowercase fields and derived values

Command-line flags are applied on top of the Environment layer before
Settings are derived (see cardinality_exporter.cli).
"""

import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from cardinality_exporter.exceptions import ConfigurationError

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_LABEL_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


class Environment(BaseSettings):
    """Raw environment variable loading."""

    model_config = SettingsConfigDict(
        env_file=_PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ── Backend ────────────────────────────────────────────────────────

    PROMETHEUS_ADDRESS: str = Field(default="")
    PROMETHEUS_USER: str = Field(default="")
    PROMETHEUS_PASSWORD: SecretStr = Field(default=SecretStr(""))
    PROMETHEUS_HEADERS: list[str] = Field(default_factory=list)

    # ── Collector ──────────────────────────────────────────────────────

    DIMENSION: str = Field(default="job")
    SELECTOR: str = Field(default="")
    TIMEOUT_SECONDS: float = Field(default=60.0)

    # ── Server ─────────────────────────────────────────────────────────

    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8080)
    WAITRESS_THREADS: int = Field(default=4)
    LOG_LEVEL: str = Field(default="INFO")


def load_environment() -> Environment:
    """Read the Environment layer.

    Raises:
        ConfigurationError: If a variable cannot be parsed (e.g. PORT=abc)
    """
    try:
        return Environment()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid environment configuration: {e}") from e


def parse_header(value: str) -> tuple[str, str]:
    """Split a ``name=value`` header specification.

    Raises:
        ConfigurationError: If the value has no ``=`` or an empty name.
    """
    name, sep, header_value = value.partition("=")
    if not sep or not name.strip():
        raise ConfigurationError(
            f"header must be specified as name=value, got {value!r}"
        )
    return name.strip(), header_value


class Settings(BaseModel):
    """Application settings with lowercase fields and derived values."""

    model_config = ConfigDict(from_attributes=True)

    address: str = ""
    user: str = ""
    password: SecretStr = SecretStr("")
    headers: list[tuple[str, str]] = Field(default_factory=list)

    dimension: str = "job"
    selector: str = ""
    timeout_seconds: float = 60.0

    host: str = "0.0.0.0"
    port: int = 8080
    waitress_threads: int = 4
    log_level: str = "INFO"

    @property
    def listen_address(self) -> str:
        return f"{self.host}:{self.port}"

    def validate_config(self) -> None:
        errors: list[str] = []

        if not self.address:
            errors.append("PROMETHEUS_ADDRESS (--address) is required")
        elif not self.address.startswith(("http://", "https://")):
            errors.append(
                f"PROMETHEUS_ADDRESS {self.address!r} must be an http(s) URL"
            )

        if not self.dimension:
            errors.append("DIMENSION (--dimension) must not be empty")
        elif not _LABEL_NAME_RE.match(self.dimension):
            errors.append(
                f"DIMENSION {self.dimension!r} is not a valid Prometheus label name"
            )

        if self.timeout_seconds <= 0:
            errors.append("TIMEOUT_SECONDS (--timeout) must be greater than zero")

        if not 1 <= self.port <= 65535:
            errors.append(f"PORT {self.port} is out of range")

        if self.waitress_threads < 1:
            errors.append("WAITRESS_THREADS must be at least 1")

        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            )

    @classmethod
    def load(cls, env: "Environment | None" = None) -> "Settings":
        if env is None:
            env = load_environment()

        headers = [parse_header(value) for value in env.PROMETHEUS_HEADERS]

        return cls(
            # Backend
            address=env.PROMETHEUS_ADDRESS,
            user=env.PROMETHEUS_USER,
            password=env.PROMETHEUS_PASSWORD,
            headers=headers,

            # Collector
            dimension=env.DIMENSION,
            selector=env.SELECTOR,
            timeout_seconds=env.TIMEOUT_SECONDS,

            # Server
            host=env.HOST,
            port=env.PORT,
            waitress_threads=env.WAITRESS_THREADS,
            log_level=env.LOG_LEVEL.upper(),
        )
