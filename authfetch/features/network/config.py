"""Configuration models for the network layer."""

from typing import TYPE_CHECKING, Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from authfetch.features.network.constants import (
    DEFAULT_CHALLENGE_TIMEOUT_SECONDS,
    DEFAULT_MAX_REAUTHENTICATION_ATTEMPTS,
    DEFAULT_MAX_WORKERS,
    MAX_REAUTHENTICATION_ATTEMPTS_LIMIT,
)


if TYPE_CHECKING:
    from authfetch.settings.app import AppSettings


FORBIDDEN_CONFIG_HEADERS = frozenset({"authorization", "cookie", "x-api-key"})


class NetworkConfig(BaseModel):
    """Configuration for the network stack and its default transport.

    Central configuration for timeouts, worker pool sizing, the
    re-authentication retry bound, and headers sent with every request.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    user_agent: Annotated[str, Field(min_length=1, max_length=500)] = (
        "authfetch/0.1"
    )
    timeout_seconds: Annotated[float, Field(ge=1.0, le=300.0)] = 30.0
    max_workers: Annotated[int, Field(ge=1, le=64)] = DEFAULT_MAX_WORKERS
    follow_redirects: bool = True
    max_reauthentication_attempts: Annotated[
        int, Field(ge=0, le=MAX_REAUTHENTICATION_ATTEMPTS_LIMIT)
    ] = DEFAULT_MAX_REAUTHENTICATION_ATTEMPTS
    challenge_timeout_seconds: Annotated[float, Field(gt=0.0, le=300.0)] = (
        DEFAULT_CHALLENGE_TIMEOUT_SECONDS
    )
    default_headers: dict[str, str] = Field(
        default_factory=dict, description="Headers added to every request"
    )

    @field_validator("default_headers")
    @classmethod
    def validate_no_auth_headers(cls, v: dict[str, str]) -> dict[str, str]:
        """Ensure no credential-bearing headers are stored in config."""
        for key in v:
            if key.lower() in FORBIDDEN_CONFIG_HEADERS:
                msg = (
                    f"Header '{key}' must not be stored in config; "
                    "use an authenticator"
                )
                raise ValueError(msg)
        return v

    @classmethod
    def from_settings(cls, settings: "AppSettings") -> "NetworkConfig":
        """Build a config from environment settings.

        Args:
            settings: Loaded application settings.

        Returns:
            NetworkConfig with the settings' overrides applied.
        """
        return cls(
            user_agent=settings.user_agent,
            timeout_seconds=settings.timeout_seconds,
            max_workers=settings.max_workers,
            max_reauthentication_attempts=settings.max_reauthentication_attempts,
        )

    def build_headers(self) -> dict[str, str]:
        """Build the headers attached to every outgoing request.

        Returns:
            Complete default headers dictionary.
        """
        headers: dict[str, str] = {
            "User-Agent": self.user_agent,
            "Accept": "*/*",
        }
        headers.update(self.default_headers)
        return headers
