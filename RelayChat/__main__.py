"""
Entry point for RelayChat application.
This module provides a command-line interface to start the relay server.
"""

import argparse

from RelayChat.config import config
from RelayChat.start import server


def parse(argv=None):
    # Initialize argument parser for command line interface
    parser = argparse.ArgumentParser(prog='RelayChat', description='RelayChat starter')
    subparsers = parser.add_subparsers(dest='command', required=True, help='Available commands')

    # Setup server command line arguments
    server_parser = subparsers.add_parser('server', help='Startup relay and HTTP front')
    server_parser.add_argument('--host', default=config.HOST, help=f'Bind address (default: {config.HOST})')
    server_parser.add_argument('--port', type=int, default=config.PORT,
                               help=f'HTTP port (default: {config.PORT})')
    server_parser.add_argument('--ws-port', type=int, default=config.WS_PORT,
                               help=f'WebSocket port (default: {config.WS_PORT})')
    server_parser.add_argument('--max-history', type=int, default=config.MAX_MESSAGE_HISTORY,
                               help=f'Messages kept in history (default: {config.MAX_MESSAGE_HISTORY})')

    # Add 'relay-only' command
    relay_parser = subparsers.add_parser('relay-only', help='Startup WebSocket relay only')
    relay_parser.add_argument('--host', default=config.HOST, help=f'Bind address (default: {config.HOST})')
    relay_parser.add_argument('--ws-port', type=int, default=config.WS_PORT,
                              help=f'WebSocket port (default: {config.WS_PORT})')
    relay_parser.add_argument('--max-history', type=int, default=config.MAX_MESSAGE_HISTORY,
                              help=f'Messages kept in history (default: {config.MAX_MESSAGE_HISTORY})')

    # Add 'http-only' command
    http_parser = subparsers.add_parser('http-only', help='Startup uploads and static content only')
    http_parser.add_argument('--host', default=config.HOST, help=f'Bind address (default: {config.HOST})')
    http_parser.add_argument('--port', type=int, default=config.PORT,
                             help=f'HTTP port (default: {config.PORT})')

    return parser.parse_args(argv)


def main(argv=None):
    args = parse(argv)

    if args.command == 'server':
        server.server(host=args.host, port=args.port, ws_port=args.ws_port, max_history=args.max_history)
    elif args.command == 'relay-only':
        server.server(host=args.host, ws_port=args.ws_port, max_history=args.max_history, relay_only=True)
    elif args.command == 'http-only':
        server.http(host=args.host, port=args.port)
    else:
        raise Exception('Unknown command')


if __name__ == '__main__':
    main()
