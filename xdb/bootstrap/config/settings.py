from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource, YamlConfigSettingsSource

from xdb.bootstrap.config.loader import get_configfile
from xdb.core.models.config import DEFAULT_HOST

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class ClientSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host: Annotated[
        str,
        Field(
            description=(
                "Address of the XDB server.\n"
                "The port is not configurable: XDB servers always listen on 8080."
            ),
            default=DEFAULT_HOST
        )
    ]


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Annotated[
        LogLevel,
        Field(
            description=(
                "Logging verbosity.\n"
                "DEBUG also logs every frame sent to the server."
            ),
            default="INFO"
        )
    ]


class XDBConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="XDB_",
        env_nested_delimiter="__",
        extra="forbid"
    )

    client: Annotated[
        ClientSettings,
        Field(
            description="Connection to the XDB server.",
            default_factory=ClientSettings
        )
    ]

    logging: Annotated[
        LoggingSettings,
        Field(
            description="Operator-visible diagnostics.",
            default_factory=LoggingSettings
        )
    ]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=get_configfile()),
        )
