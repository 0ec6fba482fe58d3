import codecs
from typing import Annotated

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource, YamlConfigSettingsSource

from echoline.bootstrap.config.loader import get_configfile
from echoline.core.framing.delimiter import Delimiter
from echoline.core.handlers.echo import DEFAULT_ACK_TEMPLATE
from echoline.core.models.config import FramingConfig


class FramingSettings(BaseModel):
    delimiter: Annotated[
        Delimiter,
        Field(
            description=(
                "Frame boundary on the wire: 'lf' for \\n or 'crlf' for \\r\\n.\n"
                "Both ends of a connection must use the same delimiter."
            ),
            default=Delimiter.lf
        )
    ]

    max_frame_size: Annotated[
        int,
        Field(
            description=(
                "Maximum size in bytes of one frame, or of the undelimited data\n"
                "waiting for its delimiter. Exceeding it closes the connection."
            ),
            default=8192,
            gt=0
        )
    ]

    encoding: Annotated[
        str,
        Field(
            description="Text encoding of frame payloads.",
            default="utf-8"
        )
    ]

    @field_validator("encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"Unknown encoding '{v}'") from None
        return v

    def to_config(self) -> FramingConfig:
        return FramingConfig(
            delimiter=self.delimiter.sequence,
            max_frame_size=self.max_frame_size,
            encoding=self.encoding,
        )


class ServerSettings(BaseModel):
    host: Annotated[
        str,
        Field(
            description="Bind address for the echo server.",
            default="0.0.0.0"
        )
    ]

    port: Annotated[
        int,
        Field(
            description="TCP port for the echo server.",
            default=53233,
            ge=0,
            le=65535
        )
    ]

    backlog: Annotated[
        int,
        Field(
            description="Maximum number of pending TCP connections.",
            default=100,
            gt=0
        )
    ]

    bind_timeout: Annotated[
        float,
        Field(
            description="Maximum time in seconds allowed for binding the address.",
            default=5.0,
            gt=0
        )
    ]

    limit_concurrency: Annotated[
        int,
        Field(
            description=(
                "Maximum number of simultaneously open connections.\n"
                "Connections beyond it are closed as soon as they are accepted."
            ),
            default=1024,
            gt=0
        )
    ]

    timeout_graceful_shutdown: Annotated[
        float,
        Field(
            description="Maximum time allowed for graceful shutdown.",
            default=5.0,
            gt=0
        )
    ]

    template: Annotated[
        str,
        Field(
            description=(
                "Acknowledgment sent for every received message.\n"
                "'{remote}' is replaced by the client endpoint and '{message}'\n"
                "by the received text."
            ),
            default=DEFAULT_ACK_TEMPLATE
        )
    ]

    @field_validator("template")
    @classmethod
    def validate_template(cls, v: str) -> str:
        try:
            v.format(remote="127.0.0.1:53233", message="")
        except (KeyError, IndexError, AttributeError, ValueError) as exc:
            raise ValueError(
                f"Template may only use the {{remote}} and {{message}} placeholders: {exc!r}"
            ) from None
        return v


class ClientSettings(BaseModel):
    host: Annotated[
        str,
        Field(
            description="Host of the echo server to connect to.",
            default="localhost"
        )
    ]

    port: Annotated[
        int,
        Field(
            description="TCP port of the echo server.",
            default=53233,
            ge=0,
            le=65535
        )
    ]

    connect_timeout: Annotated[
        float,
        Field(
            description="Maximum time in seconds allowed for connecting.",
            default=5.0,
            gt=0
        )
    ]

    greeting: Annotated[
        str,
        Field(
            description="First message sent once connected.",
            default="Hello, Server!"
        )
    ]

    timeout_graceful_shutdown: Annotated[
        float,
        Field(
            description="Maximum time allowed for closing the connection on exit.",
            default=5.0,
            gt=0
        )
    ]


class EchoLineConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ECHOLINE_",
        env_nested_delimiter="__",
        extra="ignore"
    )

    server: Annotated[
        ServerSettings,
        Field(
            description="Listening side: bind address, limits and acknowledgment format.",
            default_factory=ServerSettings
        )
    ]

    client: Annotated[
        ClientSettings,
        Field(
            description="Connecting side: target address, timeout and greeting.",
            default_factory=ClientSettings
        )
    ]

    framing: Annotated[
        FramingSettings,
        Field(
            description="Wire framing shared by server and client.",
            default_factory=FramingSettings
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
        sources: tuple[PydanticBaseSettingsSource, ...] = (init_settings, env_settings)

        if (file := get_configfile()) is not None:
            sources += (YamlConfigSettingsSource(settings_cls, yaml_file=file),)

        return sources
