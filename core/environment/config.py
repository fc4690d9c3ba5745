import os
from typing import Literal
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings using Pydantic Settings.

    Attributes
    ----------
    rpc_url : str
        Ledger node JSON-RPC endpoint
    rpc_timeout : float
        Timeout in seconds for a single RPC HTTP call
    request_timeout : float
        Deadline in seconds for a whole API request, after which
        in-flight ledger calls are cancelled
    log_level : Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        Level of the application logger (case-insensitive)
    """

    rpc_url: str = "https://mainnet.infura.io"
    rpc_timeout: float = Field(default=10.0, gt=0)
    request_timeout: float = Field(default=60.0, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False
    )

    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        return v.strip().upper() if isinstance(v, str) else v
