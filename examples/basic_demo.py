#!/usr/bin/env python3
"""
Basic example of a Boxline channel.

This example shows:
1. Starting a background echo server
2. Dialing it and exchanging messages
3. A custom handler in place of echo
4. Watching channel events through an observer
"""

from boxline import ChannelConfig, SecureServer, dial
from boxline.utils import setup_logging


def shout(channel):
    """Reply to every message in upper case."""
    while True:
        data = channel.read()
        if not data:
            return
        channel.write(data.upper())


def main():
    setup_logging("WARNING")
    print("📦 Boxline - Secure Channel Demo")
    print("=" * 60)

    # 1. Echo server on an ephemeral port
    print("\n1. Starting echo server...")
    with SecureServer(host="127.0.0.1") as server:
        host, port = server.address
        print(f"   Listening on {host}:{port}")

        # 2. Round trip
        print("\n2. Dialing and sending messages...")
        with dial(server.address) as channel:
            print(f"   Server key fingerprint: {channel.peer_fingerprint}")
            for message in [b"hello", b"Boxline frames every chunk with a fresh nonce"]:
                channel.write(message)
                reply = channel.read()
                print(f"   Sent {message!r}, got {reply!r}")

    # 3. Custom handler
    print("\n3. Custom handler...")
    with SecureServer(host="127.0.0.1", handler=shout) as server:
        with dial(server.address) as channel:
            channel.write(b"quiet please")
            print(f"   Reply: {channel.read()!r}")

    # 4. Observer
    print("\n4. Channel events...")
    events = []
    config = ChannelConfig(observer=lambda event, fields: events.append((event, fields)))
    with SecureServer(host="127.0.0.1") as server:
        with dial(server.address, config) as channel:
            channel.write(b"observed")
            channel.read()

    for event, fields in events:
        print(f"   {event:15} {fields}")

    print("\n✅ Demo complete")


if __name__ == "__main__":
    main()
