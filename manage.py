#!/usr/bin/env python
"""Command-line entry point; defaults to the ``stillbirth.settings`` module."""
import os
import sys


def main() -> None:
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'stillbirth.settings')
    from django.core.management import execute_from_command_line  # type: ignore
    execute_from_command_line(sys.argv)


if __name__ == '__main__':
    main()
