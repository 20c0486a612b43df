"""Application Configuration - device tools, datastore and logging settings"""

import os
from typing import Literal, Tuple, Type

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

CONFIG_ENV_VAR = "XTFLASH_CONFIG"
DEFAULT_CONFIG_FILE = "xtflash.toml"


class DatabaseSettings(BaseModel):
    """[database] section"""

    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    name: str = "pixel_db"
    driver: str = "mysql+pymysql"
    url: str = Field(
        default="",
        description="Full SQLAlchemy URL; overrides host/port/user/password/name when set",
    )
    echo: bool = False

    @property
    def sqlalchemy_url(self) -> str:
        """Build the SQLAlchemy connection URL"""
        if self.url:
            return self.url
        credentials = self.user
        if self.password:
            credentials = f"{self.user}:{self.password}"
        return f"{self.driver}://{credentials}@{self.host}:{self.port}/{self.name}"


class ToolSettings(BaseModel):
    """[tools] section"""

    adb_path: str = "adb"
    fastboot_path: str = "fastboot"
    downloads_dir: str = "downloads"
    user_agent: str = Field(
        default="AndroidFlashToolXT/1.0",
        description="Client identifier sent with firmware downloads",
    )
    flash_pacing_ms: int = Field(default=300, ge=0)
    flash_success_check: Literal["output", "exit_status"] = "output"
    command_timeout: int = Field(
        default=0,
        ge=0,
        description="Subprocess timeout in seconds, 0 disables it",
    )

    @property
    def pacing_seconds(self) -> float:
        return self.flash_pacing_ms / 1000.0

    @property
    def timeout_or_none(self):
        return self.command_timeout or None


class LoggingSettings(BaseModel):
    """[logging] section"""

    level: str = "INFO"
    format: Literal["text", "json"] = "text"
    log_dir: str = ""

    @field_validator("level")
    @classmethod
    def normalize_level(cls, v: str) -> str:
        return v.upper()


class ReportSettings(BaseModel):
    """[report] section"""

    details_file: str = "details.txt"
    history_limit: int = Field(default=10, ge=1)


class Settings(BaseSettings):
    """Unified settings for the flash tool.

    Values come from constructor arguments, then ``XTFLASH_*`` environment
    variables, then the TOML file named by ``XTFLASH_CONFIG``. A missing file
    or missing keys fall back to the defaults declared here.
    """

    model_config = SettingsConfigDict(
        env_prefix="XTFLASH_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    tools: ToolSettings = Field(default_factory=ToolSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    report: ReportSettings = Field(default_factory=ReportSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=config_file_path()),
        )


def config_file_path() -> str:
    """Path of the TOML configuration file"""
    return os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE


def load_settings() -> Settings:
    """Build the settings value once at startup"""
    return Settings()
