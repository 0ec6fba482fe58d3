import argparse
import asyncio
import functools
import json
from functools import lru_cache

from pydantic import ValidationError

from echoline.bootstrap.config.loader import get_cli_args
from echoline.bootstrap.config.settings import EchoLineConfig
from echoline.core.connection.group import ConnectionGroup
from echoline.core.handlers.echo import EchoHandler
from echoline.core.handlers.printing import PrintingHandler
from echoline.core.models.config import ServerConfig, ClientConfig
from echoline.core.service.lifecycle import ServerLifecycle, ClientLifecycle
from echoline.core.transport.client import Dialer
from echoline.core.transport.server import Listener


@lru_cache
def get_loop() -> asyncio.AbstractEventLoop:
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    return loop


@lru_cache
def get_group() -> ConnectionGroup:
    return ConnectionGroup()


@lru_cache
def get_server_lifecycle() -> ServerLifecycle:
    config = build_server_config(get_config(), get_cli_args(), get_group())
    listener = Listener(config=config, loop=get_loop())
    return ServerLifecycle(listener=listener, group=get_group())


@lru_cache
def get_client_lifecycle() -> ClientLifecycle:
    config = build_client_config(get_config(), get_cli_args())
    dialer = Dialer(config=config, loop=get_loop())
    return ClientLifecycle(dialer=dialer)


def build_server_config(
    config: EchoLineConfig,
    args: argparse.Namespace,
    group: ConnectionGroup,
) -> ServerConfig:
    server = config.server

    return ServerConfig(
        handler_factory=functools.partial(EchoHandler, group=group, template=server.template),
        host=args.host or server.host,
        port=args.port if args.port is not None else server.port,
        backlog=server.backlog,
        framing=config.framing.to_config(),
        bind_timeout=server.bind_timeout,
        limit_concurrency=server.limit_concurrency,
        timeout_graceful_shutdown=server.timeout_graceful_shutdown,
    )


def build_client_config(config: EchoLineConfig, args: argparse.Namespace) -> ClientConfig:
    client = config.client

    return ClientConfig(
        handler_factory=PrintingHandler,
        host=args.host or client.host,
        port=args.port if args.port is not None else client.port,
        framing=config.framing.to_config(),
        connect_timeout=client.connect_timeout,
        greeting=args.greeting if args.greeting is not None else client.greeting,
        timeout_graceful_shutdown=client.timeout_graceful_shutdown,
    )


@lru_cache
def get_config() -> EchoLineConfig:
    try:
        return EchoLineConfig()
    except FileNotFoundError as ex:
        raise SystemExit(f"Provide a correct configuration file path: {ex}")
    except ValidationError as ex:
        msg = ["Configuration validation failed:"]
        errs = json.loads(ex.json())
        for err in errs:
            msg.append(f"  {'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}")
        raise SystemExit("\n".join(msg))
