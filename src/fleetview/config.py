"""Configuration for fleetview."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_KUBECONFIG = Path.home() / ".kube" / "config"


class AuthMode(str, Enum):
    """How cluster credentials are obtained."""

    AUTO = "auto"
    IN_CLUSTER = "in-cluster"
    KUBECONFIG = "kubeconfig"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ClientOptions(BaseModel):
    """Options for building a connection to one API server."""

    auth_mode: AuthMode = Field(AuthMode.AUTO, description="Credential source")
    kubeconfig_path: Path | None = Field(None, description="Path to a kubeconfig file")
    context: str | None = Field(None, description="Kubeconfig context; current context if unset")
    insecure_skip_tls_verify: bool = Field(False, description="Skip TLS verification")
    user_agent: str | None = Field(None, description="Suffix appended to the user agent")


class FleetviewConfig(BaseSettings):
    """Process configuration.

    Loaded from environment variables with the FLEETVIEW_ prefix or from a
    .env file.
    """

    model_config = SettingsConfigDict(
        env_prefix="FLEETVIEW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    auth_mode: AuthMode = Field(
        default=AuthMode.AUTO,
        description="Credential source: in-cluster identity first, then kubeconfig",
    )
    kubeconfig_path: Path | None = Field(
        default=None,
        description="Kubeconfig for the cluster the dashboard runs in",
    )
    kubeconfig_context: str | None = Field(
        default=None,
        description="Context within kubeconfig_path",
    )
    control_plane_kubeconfig_path: Path | None = Field(
        default=None,
        description="Kubeconfig for the control plane API server; defaults to kubeconfig_path",
    )
    control_plane_context: str | None = Field(
        default=None,
        description="Context within control_plane_kubeconfig_path",
    )
    insecure_skip_tls_verify: bool = Field(
        default=False,
        description="Skip TLS verification of API servers",
    )
    user_agent: str = Field(
        default="dashboard",
        description="User agent suffix sent to API servers",
    )
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )

    @property
    def effective_kubeconfig_path(self) -> Path:
        """Get the kubeconfig path, falling back to ~/.kube/config."""
        return self.kubeconfig_path or DEFAULT_KUBECONFIG

    @property
    def effective_control_plane_kubeconfig_path(self) -> Path:
        """Get the control plane kubeconfig path."""
        return self.control_plane_kubeconfig_path or self.effective_kubeconfig_path

    def host_options(self) -> ClientOptions:
        """Connection options for the cluster the dashboard runs in."""
        return ClientOptions(
            auth_mode=self.auth_mode,
            kubeconfig_path=self.effective_kubeconfig_path,
            context=self.kubeconfig_context,
            insecure_skip_tls_verify=self.insecure_skip_tls_verify,
            user_agent=self.user_agent,
        )

    def control_plane_options(self) -> ClientOptions:
        """Connection options for the control plane and its member proxies."""
        return ClientOptions(
            auth_mode=self.auth_mode,
            kubeconfig_path=self.effective_control_plane_kubeconfig_path,
            context=self.control_plane_context or self.kubeconfig_context,
            insecure_skip_tls_verify=self.insecure_skip_tls_verify,
            user_agent=self.user_agent,
        )

    def validate_auth_config(self) -> list[str]:
        """Check the credential settings.

        Returns:
            Warnings about settings that will be ignored.

        Raises:
            ValueError: If the settings cannot produce credentials.
        """
        warnings: list[str] = []
        if self.auth_mode == AuthMode.KUBECONFIG:
            path = self.effective_control_plane_kubeconfig_path
            if not path.exists():
                raise ValueError(f"Kubeconfig file not found: {path}")
        if self.auth_mode == AuthMode.IN_CLUSTER:
            if self.kubeconfig_path or self.control_plane_kubeconfig_path:
                warnings.append("Kubeconfig paths are ignored with in-cluster auth mode")
            if self.kubeconfig_context or self.control_plane_context:
                warnings.append("Kubeconfig contexts are ignored with in-cluster auth mode")
        if self.insecure_skip_tls_verify:
            warnings.append("TLS verification of API servers is disabled")
        return warnings
