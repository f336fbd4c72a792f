from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


class Settings(BaseSettings):
    """Fixed service parameters.

    Only constructor arguments are read: the process takes no configuration from
    the environment or from files, so an unconfigured process always serves the
    documented contract on port 8080.
    """

    model_config = SettingsConfigDict(extra="ignore")

    host: str = "0.0.0.0"
    port: int = 8080
    cpu_burn_ms: int = Field(default=1200, ge=0)
    latency_delay_ms: int = Field(default=2000, ge=0)
    shutdown_grace_seconds: float = Field(default=10.0, gt=0)
    keep_alive_timeout_seconds: int = Field(default=60, gt=0)
    crash_exit_code: int = Field(default=1, ge=1, le=255)
    log_level: str = "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings,)

    @property
    def cpu_burn_seconds(self) -> float:
        return self.cpu_burn_ms / 1000.0

    @property
    def latency_delay_seconds(self) -> float:
        return self.latency_delay_ms / 1000.0

    @property
    def listen_address(self) -> str:
        return f"{self.host}:{self.port}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
