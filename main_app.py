#!/usr/bin/env python3
"""
Group Chat - Main Application Launcher

Usage:
    python main_app.py [--server HOST] [--port PORT] [--gui | --cli]

Modes:
    --gui        Launch with PyQt6 GUI (default)
    --cli        Launch with command-line interface
"""

import argparse
import asyncio
import logging
import sys

from groupchat.common.constants import DEFAULT_AVATAR
from groupchat.utils.config import ClientConfig
from groupchat.utils.logger import logger


def check_dependencies():
    """Check if the GUI dependencies are installed."""
    missing = []

    try:
        import PyQt6  # noqa: F401
    except ImportError:
        missing.append("PyQt6")

    return missing


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Group Chat - real-time group chat client',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Connect to local server with the GUI
  python main_app.py

  # Chat from the terminal
  python main_app.py --cli --username Ana --avatar 🚀

  # Connect to remote server
  python main_app.py --server 192.168.1.100 --port 3001
        """
    )

    parser.add_argument('--server', type=str, default=None,
                        help='Server address (default: $CHAT_SERVER_HOST or localhost)')
    parser.add_argument('--port', type=int, default=None,
                        help='Server TCP port (default: $CHAT_SERVER_PORT or 3001)')
    parser.add_argument('--username', type=str, default=None,
                        help='Username for CLI mode (will prompt if not provided)')
    parser.add_argument('--avatar', type=str, default=DEFAULT_AVATAR,
                        help='Avatar for CLI mode')
    parser.add_argument('--connection-timeout', type=float, default=None,
                        help='Seconds to wait for the server before giving up')

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--gui', action='store_true', help='Launch the PyQt6 GUI (default)')
    mode.add_argument('--cli', action='store_true', help='Launch the command-line client')

    parser.add_argument('--debug', action='store_true', help='Log every event crossing the transport')
    parser.add_argument('--check-deps', action='store_true', help='Check dependencies and exit')
    return parser


def config_from_args(args) -> ClientConfig:
    config = ClientConfig.from_env()
    if args.server:
        config.host = args.server
    if args.port:
        config.port = args.port
    config.update_timeouts(connection_timeout=args.connection_timeout)
    return config


def main(argv=None) -> int:
    """Main entry point for the application."""
    args = build_parser().parse_args(argv)

    missing_deps = check_dependencies()
    if args.check_deps:
        if missing_deps:
            print("Missing dependencies:")
            for dep in missing_deps:
                print(f"  - {dep}")
            print("\nInstall with: pip install -e .")
            return 1
        print("All dependencies are installed!")
        return 0

    if args.debug:
        logger.set_level(logging.DEBUG)

    config = config_from_args(args)

    if args.cli:
        from groupchat.main_client import main as cli_main
        try:
            asyncio.run(cli_main(config, args.username, args.avatar))
        except KeyboardInterrupt:
            print("\n[INFO] Client terminated")
        return 0

    if missing_deps:
        print("[ERROR] PyQt6 not installed. Install with: pip install PyQt6")
        return 1

    from groupchat.ui.client_gui import run_gui
    return run_gui(config)


if __name__ == "__main__":
    sys.exit(main())
