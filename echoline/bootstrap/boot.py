from echoline.bootstrap.config.loader import get_cli_args
from echoline.bootstrap.deps import get_loop, get_server_lifecycle, get_client_lifecycle
from echoline.core.errors import BindFailure, ConnectFailure
from echoline.core.helpers.utils import setup_signal_handler, setup_logging


def main():
    cli = get_cli_args()

    setup_logging(cli.log_level)

    loop = get_loop()
    if cli.command == "serve":
        lifecycle = get_server_lifecycle()
    else:
        lifecycle = get_client_lifecycle()

    try:
        with setup_signal_handler(loop) as stop_event:
            loop.run_until_complete(lifecycle.run(stop_event))
    except (BindFailure, ConnectFailure) as ex:
        raise SystemExit(f"[echoline] {ex}")
    except KeyboardInterrupt:
        pass
    finally:
        try:
            loop.run_until_complete(loop.shutdown_asyncgens())
            loop.run_until_complete(loop.shutdown_default_executor())
        finally:
            loop.close()


if __name__ == "__main__":
    main()
