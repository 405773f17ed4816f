"""
=============================================================================
MINISERVER CLI ENTRY POINT
=============================================================================

Run the server standalone, mostly to preview a help folder:

    # Serve ./help on the default port (50005)
    python -m miniserver --root ./help

    # Render Markdown with patitas (pip install miniserver[markdown])
    python -m miniserver --root ./docs --markdown

    # Special routes only
    python -m miniserver --no-files

Stop it with Ctrl+C, or by browsing to http://localhost:50005/shutdown.

Settings not given on the command line come from the environment
(MINISERVER_PORT, MINISERVER_ROOT, MINISERVER_FILE_SERVE,
MINISERVER_READ_TIMEOUT).

=============================================================================
"""

import argparse
import dataclasses
import logging
import signal
import sys
import threading

from . import __version__
from .config import ServerConfig
from .errors import MiniServerError
from .log import get_log_hook, logging_subscriber
from .markdown import PatitasConverter
from .server import STARTUP_UNSUPPORTED, MiniServer


logger = logging.getLogger("miniserver")


def _setup_logging(level_name: str):
    """Configure logging for the CLI."""
    level = getattr(logging, level_name.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("miniserver").setLevel(level)


def _install_signal_handlers(server: MiniServer):
    """SIGTERM stops the loop the same way /shutdown does."""
    if threading.current_thread() is not threading.main_thread():
        return

    def shutdown_handler(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
        server.shutdown()

    signal.signal(signal.SIGTERM, shutdown_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="miniserver",
        description="Loopback-only HTTP server for OAuth callbacks and local help pages",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m miniserver --root ./help            # Serve a folder
  python -m miniserver --root ./docs --markdown # Render .md with patitas
  python -m miniserver --port 50100 --no-files  # Special routes only
        """
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on, clamped to 1024-65535 (default: 50005)"
    )

    parser.add_argument(
        "--root", "-r",
        type=str,
        default=None,
        help="Folder to serve files from (default: none, no file serving)"
    )

    parser.add_argument(
        "--no-files",
        action="store_true",
        help="Disable file serving even if a root folder is set"
    )

    parser.add_argument(
        "--markdown",
        action="store_true",
        help="Convert .md files with patitas (needs the 'markdown' extra)"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"MiniServer {__version__}"
    )

    return parser


def build_config(args: argparse.Namespace) -> ServerConfig:
    """Environment first, command-line flags on top."""
    config = ServerConfig.from_env()

    overrides = {}
    if args.port is not None:
        overrides["port"] = args.port
    if args.root is not None:
        overrides["root_folder"] = args.root
        overrides["enable_file_serve"] = True
    if args.no_files:
        overrides["enable_file_serve"] = False
    if args.markdown:
        overrides["markdown_converter"] = PatitasConverter()

    if not overrides:
        return config

    return dataclasses.replace(config, **overrides)


def main(argv=None) -> int:
    """Main CLI entry point. Returns the process exit status."""
    args = build_parser().parse_args(argv)

    _setup_logging(args.log_level)
    get_log_hook().subscribe(logging_subscriber())

    try:
        config = build_config(args)
    except (MiniServerError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if config.root_folder is not None and not config.root_folder.is_dir():
        logger.warning(f"Root folder {config.root_folder} does not exist")

    server = MiniServer(config)
    _install_signal_handlers(server)

    try:
        result = server.serve()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
        server.shutdown()
        return 0
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if result == STARTUP_UNSUPPORTED:
        print("Error: this platform cannot run the listener", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
