from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and v.strip() == "*":
        return "*"
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Use top level .env file (one level above ./backend/)
        env_file="../.env",
        env_ignore_empty=True,
        extra="ignore",
    )
    PROJECT_NAME: str = "dbgate"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    SENTRY_DSN: AnyUrl | None = None

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = "*"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        if self.BACKEND_CORS_ORIGINS == "*":
            return ["*"]
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    LISTEN_HOST: str = "0.0.0.0"
    LISTEN_PORT: int = 3000

    # MySQL server shared by every database name routed through the gateway
    MYSQL_HOST: str = "localhost"
    MYSQL_PORT: int = 3306
    MYSQL_USER: str = "root"
    MYSQL_PASSWORD: str = ""

    # Shared secret expected in "Authorization: Basic <token>"
    GATEWAY_TOKEN: str = ""

    # Allow clients to send several ';'-separated statements to /query
    GATEWAY_ALLOW_MULTI_STATEMENTS: bool = False

    # Connections kept per database name
    EXTERNAL_DB_POOL_SIZE: int = 10
    # Pooled connections older than this are closed on checkout
    EXTERNAL_DB_POOL_MAX_AGE_SEC: int = 600
    EXTERNAL_DB_CONNECT_TIMEOUT: int = 10
    # Max seconds to wait for a free connection; 0 = fail at once when exhausted
    EXTERNAL_DB_ACQUIRE_TIMEOUT: float = 10.0
    # Session max_execution_time in seconds; None or 0 = server default
    EXTERNAL_DB_STATEMENT_TIMEOUT: float | None = None


settings = Settings()  # type: ignore
