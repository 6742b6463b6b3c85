from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError

ENV_PREFIX = "RECIPEBOOK_"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX)

    http_port: int
    grpc_port: int = 50051
    address: str = "127.0.0.1"
    api_key: str = ""
    dbms: str = "inmem"
    constring: str = "sqlite:///recipebook.db"
    create_schema: bool = False
    log_level: str = "INFO"
    http_grace: float = 5.0
    rpc_grace: Optional[float] = None


def read_settings(**overrides) -> Settings:
    try:
        return Settings(**overrides)
    except PydanticValidationError as exc:
        raise ConfigError(f"reading {ENV_PREFIX}* settings: {exc}") from exc
