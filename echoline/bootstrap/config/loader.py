import argparse
import os
from functools import lru_cache
from pathlib import Path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="echoline",
        description=(
            "Line-framed TCP echo service.\n\n"
            "`serve` acknowledges every newline-terminated message it receives;\n"
            "`connect` greets a server and prints whatever comes back."
        ),
        formatter_class=argparse.RawTextHelpFormatter
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        help="Path to an echoline configuration file"
    )

    parser.add_argument(
        "-l", "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=(
            "Logging verbosity.\n"
            "DEBUG    → per-connection tracing, including dropped partial frames.\n"
            "INFO     → connection lifecycle and received messages (default).\n"
            "WARNING  → refused connections and worse.\n"
            "ERROR    → connection errors only.\n"
            "CRITICAL → only critical failures."
        ),
    )

    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Accept connections and acknowledge messages.")
    serve.add_argument("--host", type=str, help="Bind address (default: 0.0.0.0)")
    serve.add_argument("--port", type=int, help="TCP port to bind (default: 53233)")

    connect = commands.add_parser("connect", help="Greet a server and print its replies.")
    connect.add_argument("--host", type=str, help="Server host (default: localhost)")
    connect.add_argument("--port", type=int, help="Server port (default: 53233)")
    connect.add_argument("--greeting", type=str, help="First message to send")

    return parser


@lru_cache
def get_cli_args() -> argparse.Namespace:
    return build_parser().parse_args()


@lru_cache
def get_configfile() -> Path | None:
    args = get_cli_args()

    # Priority: CLI > ENV > default file in current working directory
    raw = args.config or os.getenv("ECHOLINECONFIG")

    if raw is None:
        file = Path.cwd() / "echoline.yaml"
        return file if file.is_file() else None

    file = Path(raw)
    if not file.is_file():
        raise SystemExit(
            f"[config] Configuration file not found: '{file}'.\n"
            "  - Use --config <file.yaml>\n"
            "  - Or set the ECHOLINECONFIG environment variable\n"
            "  - Or place an 'echoline.yaml' file in the current working directory."
        )

    return file
