"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict

CERTIFICATE_SUBJECT_DEFAULT = "CN=OAuth Playground Demo"
CERTIFICATE_VALID_DAYS_DEFAULT = 365
CLIENT_ASSERTION_LIFETIME_DEFAULT = 60
HTTP_TIMEOUT_DEFAULT = 5.0
ALLOWED_TOKEN_HOSTS_DEFAULT = "login.microsoftonline.com,sts.windows.net"


class PlaygroundSettings(BaseSettings):
    """Client assertion lifetime, outbound HTTP, and API surface settings."""

    model_config = SettingsConfigDict(env_prefix="PLAYGROUND_")

    client_assertion_lifetime: int = CLIENT_ASSERTION_LIFETIME_DEFAULT
    http_timeout: float = HTTP_TIMEOUT_DEFAULT
    allowed_token_hosts: str = ALLOWED_TOKEN_HOSTS_DEFAULT
    cors_origins: str = ""
    log_level: str = "INFO"

    def get_cors_origin_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        return _split_csv(self.cors_origins)

    def get_allowed_token_host_list(self) -> list[str]:
        """Parse comma-separated token endpoint host suffixes."""
        return [h.lower() for h in _split_csv(self.allowed_token_hosts)]


def _split_csv(value: str) -> list[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]
