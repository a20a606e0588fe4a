"""Configuration management for the Seafile proxy."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    ENV: str = "local"
    SERVICE_NAME: str = "seafile-proxy"
    SERVICE_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Seafile Configuration
    SEAFILE_URL: str = ""  # e.g. https://my-seafile-host.com
    SEAFILE_TOKEN: str = ""  # obtained with `seafile-proxy login <user> <password>`
    SEAFILE_PROXY_LISTEN: str = ":8881"
    REQUEST_TIMEOUT: float = 60.0  # seconds for every Seafile API call

    # Upload Configuration
    DEFAULT_FOLDER: str = "/test/"
    DEFAULT_CALLBACK_URL: str = "http://localhost:3000/seafile_uploads"  # empty = no callbacks
    MAX_FORM_SIZE_MB: int = 1024

    # Callback Notifications
    CALLBACK_TIMEOUT: float = 10.0
    CALLBACK_MAX_CONCURRENCY: int = 4
    CALLBACK_MAX_PENDING: int = 100

    # Download Configuration
    DOWNLOAD_CHUNK_SIZE: int = 1024 * 1024  # 1MB

    # Error bodies: raw upstream messages vs. a generic message
    EXPOSE_ERROR_DETAILS: bool = True

    @property
    def seafile_base_url(self) -> str:
        """SEAFILE_URL without a trailing slash."""
        return self.SEAFILE_URL.rstrip("/")

    @property
    def max_form_size_bytes(self) -> int:
        """Convert MAX_FORM_SIZE_MB to bytes."""
        return self.MAX_FORM_SIZE_MB * 1024 * 1024

    @property
    def listen_host(self) -> str:
        """Host part of SEAFILE_PROXY_LISTEN, all interfaces when blank."""
        return parse_listen_address(self.SEAFILE_PROXY_LISTEN)[0]

    @property
    def listen_port(self) -> int:
        """Port part of SEAFILE_PROXY_LISTEN."""
        return parse_listen_address(self.SEAFILE_PROXY_LISTEN)[1]


def parse_listen_address(listen: str) -> tuple[str, int]:
    """Split a ``[host]:port`` listen address.

    >>> parse_listen_address(":8080")
    ('0.0.0.0', 8080)
    """
    host, sep, port = listen.strip().rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid listen address: {listen!r}, expected [host]:port")
    return host.strip("[]") or "0.0.0.0", int(port)


# Singleton settings instance
settings = Settings()
