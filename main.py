#!/usr/bin/env python3
"""
Command-line entry point for Better Unsubscribe.

Usage:
    python main.py <command> [options]

Examples:
    python main.py init
    python main.py account add user@gmail.com
    python main.py password store user@gmail.com
    python main.py check newsletter-2024-05 --dir ./messages
    python main.py unsubscribe newsletter-2024-05 --dir ./messages --dry-run
    python main.py delete newsletter-2024-05 --dir ./messages --scope address
"""

from unsubscriber.cli import cli


if __name__ == '__main__':
    cli()
