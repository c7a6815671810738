"""
Command-line interface for Boxline.

Server mode listens and runs an authenticated echo for every connection:

    boxline -l 8000

Client mode connects to localhost, sends one message and prints the echo:

    boxline 8000 "hello world"
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from .channel.secure import dial
from .channel.server import serve
from .config import ChannelConfig
from .errors import BoxlineError
from .protocol.frame import FRAMINGS
from .transport.tcp import listen
from .utils.logging_config import setup_logging

logger = logging.getLogger("boxline")


def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog='boxline',
        description='Secure echo server and client over an encrypted TCP channel',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start an echo server on port 8000
  boxline -l 8000

  # Send a message and print the echoed reply
  boxline 8000 "hello world"
        """
    )
    parser.add_argument('-l', dest='listen_port', type=int, metavar='PORT',
                        help='Listen mode: serve echo on PORT')
    parser.add_argument('args', nargs='*', metavar='PORT MESSAGE',
                        help='Client mode: port on localhost and message to send')
    parser.add_argument('--framing', choices=FRAMINGS,
                        help='Wire framing (both peers must match)')
    parser.add_argument('--log-level', default=os.environ.get('BOXLINE_LOG_LEVEL', 'INFO'),
                        help='Logging level (default: INFO)')
    parser.add_argument('--log-file', help='Also write logs to this file')
    return parser


def run_server(port: int, config: ChannelConfig) -> int:
    """Serve echo until interrupted or the listener fails."""
    listener = listen("0.0.0.0", port)
    try:
        serve(listener, config=config)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        listener.close()
    return 0


def run_client(port: str, message: str, config: ChannelConfig) -> int:
    """Send one message and print the echoed reply."""
    payload = message.encode('utf-8')
    with dial(f"localhost:{port}", config) as channel:
        channel.write(payload)

        reply = b""
        while len(reply) < len(payload):
            data = channel.read(len(payload) - len(reply))
            if not data:
                break
            reply += data

    print(reply.decode('utf-8', errors='replace'))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.listen_port is None and len(args.args) != 2:
        parser.error("client mode requires PORT and MESSAGE")

    try:
        setup_logging(args.log_level, args.log_file)
    except ValueError as e:
        parser.error(f"invalid log level: {e}")

    try:
        config = ChannelConfig.from_env()
        if args.framing:
            config = config.with_overrides(framing=args.framing)

        if args.listen_port is not None:
            return run_server(args.listen_port, config)
        return run_client(args.args[0], args.args[1], config)

    except BoxlineError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except ValueError as e:
        logger.error(f"Invalid argument: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
