from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str
    host: str
    port: int
    debug: bool
    base_url: str  # Public URL of this service, e.g. https://localhost:3000 (used for the OIDC redirect)
    oidc_issuer: str = "https://accounts.google.com"
    oidc_client_id: str
    oidc_client_secret: str
    oidc_http_timeout: float = 10.0  # Seconds, for discovery, token and JWKS requests
    session_ttl_minutes: int = 30  # Inactivity window, renewed on every authenticated request
    session_cookie_secure: bool = True  # Disable only for local development over plain HTTP
    cors_origins: list[str] = []
    max_body_bytes: int = 64 * 1024  # Upper bound for JSON request bodies

    model_config = {
        "env_file": [".env"],
        "env_prefix": "POCKETNOTES_",
        "extra": "ignore",
    }
