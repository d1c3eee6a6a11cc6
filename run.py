#!/usr/bin/env python3
"""
Simple runner script for the YouTube Comment Analyzer

Usage:
    python run.py                          # Start in development mode
    python run.py --prod                   # Start in production mode
    python run.py --max-comments 500       # Cap comments fetched per video
    python run.py --help                   # Show help message
"""

import os
import sys
import argparse


def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description='YouTube Comment Analyzer Runner',
        epilog='Example: python run.py --env production --host 0.0.0.0 --port 8080'
    )

    parser.add_argument(
        '--env', '--environment',
        choices=['development', 'production', 'testing'],
        default='development',
        help='Environment configuration to use (default: development)'
    )
    parser.add_argument(
        '--prod', '--production',
        action='store_const',
        const='production',
        dest='env',
        help='Shortcut for --env production'
    )
    parser.add_argument('--host', default='127.0.0.1', help='Host to bind the server to (default: 127.0.0.1)')
    parser.add_argument('--port', type=int, default=5000, help='Port to bind the server to (default: 5000)')

    debug_group = parser.add_mutually_exclusive_group()
    debug_group.add_argument('--debug', action='store_true', help='Enable debug mode')
    debug_group.add_argument('--no-debug', action='store_true', help='Disable debug mode')

    parser.add_argument(
        '--max-comments',
        type=int,
        help='Maximum top-level comments fetched per video (default: 2000)'
    )
    parser.add_argument(
        '--gemini-model',
        help='Gemini model used for translation and analysis'
    )
    parser.add_argument('--log-dir', help='Directory for log files (default: logs)')

    return parser.parse_args(argv)


def setup_environment(args):
    """Export arguments as environment variables read by the configuration"""
    os.environ['FLASK_ENV'] = args.env
    os.environ['FLASK_HOST'] = args.host
    os.environ['FLASK_PORT'] = str(args.port)

    if args.debug:
        os.environ['FLASK_DEBUG'] = 'True'
    elif args.no_debug or args.env == 'production':
        os.environ['FLASK_DEBUG'] = 'False'
    else:
        os.environ['FLASK_DEBUG'] = 'True'

    if args.max_comments:
        os.environ['MAX_COMMENTS_PER_VIDEO'] = str(args.max_comments)
    if args.gemini_model:
        os.environ['GEMINI_MODEL'] = args.gemini_model
    if args.log_dir:
        os.environ['LOG_DIRECTORY'] = args.log_dir


def main_runner():
    """Main runner function"""
    args = parse_arguments()
    setup_environment(args)

    # Configuration is read at import time, after the environment is set
    from main import main

    print(f"Starting YouTube Comment Analyzer ({args.env}) on http://{args.host}:{args.port}")

    try:
        main()
    except KeyboardInterrupt:
        print("\nApplication stopped by user")
        sys.exit(0)


if __name__ == '__main__':
    main_runner()
