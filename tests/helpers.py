import asyncio
import os
import socket

from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, YamlConfigSettingsSource

from echoline.bootstrap.config.settings import EchoLineConfig
from echoline.core.handlers.echo import EchoHandler


class FakeEchoLineConfig(EchoLineConfig):
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
            YamlConfigSettingsSource(settings_cls, yaml_file=os.environ["TEST_ECHOLINECONFIG"]),
        )


class SpyEchoHandler(EchoHandler):
    """EchoHandler that also records what it saw, for assertions."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.frames: list[bytes] = []
        self.errors: list[Exception] = []
        self.disconnected = 0

    async def on_frame(self, connection, frame: bytes) -> None:
        self.frames.append(frame)
        await super().on_frame(connection, frame)

    async def on_error(self, connection, cause: Exception) -> None:
        self.errors.append(cause)
        await super().on_error(connection, cause)

    async def on_disconnect(self, connection) -> None:
        self.disconnected += 1
        await super().on_disconnect(connection)


async def wait_until(predicate, timeout: float = 2.0) -> None:
    async def poll():
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout=timeout)


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
