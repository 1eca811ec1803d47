from __future__ import annotations

from pathlib import Path
from typing import Optional, Type

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from .loader import YamlConfigSettingsSource, load_config
from .log import LoggingSettings
from .network import NetworkSettings
from .storage import StorageSettings
from .transform import TransformSettings


class Settings(BaseSettings):
    """
    Main application configuration model.
    """

    network: NetworkSettings = Field(default_factory=NetworkSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    transform: TransformSettings = Field(default_factory=TransformSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    config_file: Optional[Path] = Field(default=None, exclude=True)

    model_config = SettingsConfigDict(
        env_prefix="SUBFUSION_", case_sensitive=False, env_nested_delimiter="__"
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        config_file = init_settings.init_kwargs.get("config_file")
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=config_file),
            file_secret_settings,
        )


__all__ = [
    "Settings",
    "NetworkSettings",
    "StorageSettings",
    "TransformSettings",
    "LoggingSettings",
    "load_config",
]
