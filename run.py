#!/usr/bin/env python3
"""
Practice exam engine
Startup script

Usage:
    python run.py [--port PORT] [--host HOST] [--debug]

Examples:
    python run.py
    python run.py --port 8080
    python run.py --host 0.0.0.0 --port 5000 --debug
"""

import argparse
import sys

from app import create_app
from practice_exam.core.config import Config


def main():
    """Start the application"""
    parser = argparse.ArgumentParser(description='Practice exam engine')
    parser.add_argument('--host', default=Config.HOST, help=f'host address (default: {Config.HOST})')
    parser.add_argument('--port', type=int, default=Config.PORT, help=f'port (default: {Config.PORT})')
    parser.add_argument('--debug', action='store_true', help='run in debug mode')

    args = parser.parse_args()

    if args.debug:
        Config.DEBUG = True

    app = create_app(Config)

    print("=" * 60)
    print("Practice exam engine")
    print("=" * 60)
    print(f"Host: {args.host}")
    print(f"Port: {args.port}")
    print(f"Debug mode: {'on' if args.debug else 'off'}")
    print(f"Questions: {len(app.question_bank)} in {app.question_bank.total_sessions} sessions")
    print(f"URL: http://{args.host}:{args.port}")
    print("=" * 60)

    try:
        app.run(host=args.host, port=args.port, debug=args.debug, use_reloader=args.debug)
    except KeyboardInterrupt:
        print("\nStopped")
        sys.exit(0)


if __name__ == '__main__':
    main()
