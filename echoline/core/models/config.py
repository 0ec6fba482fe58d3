from dataclasses import dataclass, field

from echoline.core.connection.handler import HandlerFactory


@dataclass
class FramingConfig:
    """
    Wire framing shared by both ends of a connection.
    """
    delimiter: bytes = b"\n"
    """
    Byte sequence terminating every frame, b"\\n" or b"\\r\\n".
    """

    max_frame_size: int = 8192
    """
    Maximum number of bytes a frame, or an undelimited tail waiting for
    its delimiter, may hold. Going past it closes the connection.
    """

    encoding: str = "utf-8"
    """
    Text encoding of frame payloads.
    """


@dataclass
class ServerConfig:
    """
    Static configuration for a Listener.
    """
    handler_factory: HandlerFactory
    """
    Zero-argument callable returning a fresh ConnectionHandler. Called
    once per accepted connection.
    """

    host: str = "0.0.0.0"
    """
    IP address or hostname on which the server listens.
    """

    port: int = 53233
    """
    TCP port to bind. If set to 0, the OS selects an available port.
    """

    backlog: int = 100
    """
    Maximum number of pending TCP connections waiting for accept().
    """

    framing: FramingConfig = field(default_factory=FramingConfig)

    bind_timeout: float = 5.0
    """
    Upper bound, in seconds, on the bind operation.
    """

    limit_concurrency: int | None = 1024
    """
    Maximum number of concurrently open connections. Connections accepted
    beyond it are closed immediately. None disables the limit.
    """

    timeout_graceful_shutdown: float = 5.0
    """
    Maximum time (in seconds) allowed for graceful shutdown:
    - active connections must close
    - connection tasks registered in TransportState.tasks must complete
    After this timeout, remaining tasks are cancelled.
    """


@dataclass
class ClientConfig:
    """
    Static configuration for a Dialer.
    """
    handler_factory: HandlerFactory

    host: str = "localhost"

    port: int = 53233

    framing: FramingConfig = field(default_factory=FramingConfig)

    connect_timeout: float = 5.0
    """
    Upper bound, in seconds, on the connect operation.
    """

    greeting: str | None = "Hello, Server!"
    """
    Message written as soon as the connection is active. None sends nothing.
    """

    timeout_graceful_shutdown: float = 5.0
