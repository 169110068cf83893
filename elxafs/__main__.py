#!/usr/bin/env python3
"""
ElxaFS command line entry point.

Boots the file system from a configuration file and runs one command
against it:

    python -m elxafs [--config FILE] [--user NAME] [--all] ls [PATH]
    python -m elxafs cat PATH
    python -m elxafs tree [PATH]
    python -m elxafs stats

Author: Elxa Corporation
Version: 2.0.0
"""

import argparse
import json
import sys
from typing import List, Optional

from elxafs.core.bootloader import Bootloader
from elxafs.exceptions import ElxaFSError
from elxafs.filesystem.vfs import FileSystem


def _print_listing(fs: FileSystem, path: str) -> None:
    contents = fs.get_folder_contents(path)
    for folder in contents.folders:
        print(f"{folder.name}/")
    for file in contents.files:
        print(f"{file.name:40s} {file.kind.value:10s} {file.size:>10d}")


def _print_tree(fs: FileSystem, path: str, indent: str = '') -> None:
    contents = fs.get_folder_contents(path)
    for folder in contents.folders:
        print(f"{indent}{folder.name}/")
        _print_tree(fs, folder.full_path, indent + '  ')
    for file in contents.files:
        print(f"{indent}{file.name}")


def _cat(fs: FileSystem, path: str) -> int:
    record = fs.get_file(path)
    if record is None:
        print(f"No such file: {path}", file=sys.stderr)
        return 1
    content = record.content
    if isinstance(content, bytes):
        sys.stdout.buffer.write(content)
    elif isinstance(content, str):
        print(content)
    elif content is not None:
        print(json.dumps(content, indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Boot sequence:
    1. Load configuration
    2. Initialize logging
    3. Open stores
    4. Load and seed the namespace
    5. Run the command
    6. Shutdown
    """
    parser = argparse.ArgumentParser(prog='elxafs', description='ElxaOS virtual file system')
    parser.add_argument('--config', default='elxafs.json', help='configuration file')
    parser.add_argument('--user', help='current user (defaults to the configured default user)')
    parser.add_argument('--all', action='store_true', help='show hidden entries')
    parser.add_argument('command', nargs='?', default='stats', choices=['ls', 'cat', 'tree', 'stats'])
    parser.add_argument('path', nargs='?', default='/')
    args = parser.parse_args(argv)

    bootloader = Bootloader(args.config)
    result = bootloader.boot()

    if not result.success:
        print(f"Boot failed at stage {result.failed_stage.name}", file=sys.stderr)
        print(f"Error: {result.message}", file=sys.stderr)
        return 1

    fs = bootloader.get_filesystem()
    if args.user:
        fs.set_current_user(args.user)
    fs.set_show_hidden(args.all)

    try:
        if args.command == 'ls':
            _print_listing(fs, args.path)
        elif args.command == 'tree':
            _print_tree(fs, args.path)
        elif args.command == 'cat':
            return _cat(fs, args.path)
        else:
            for key, value in fs.get_stats().items():
                print(f"{key:20s} {value}")
    except ElxaFSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        bootloader.shutdown()

    return 0


if __name__ == '__main__':
    sys.exit(main())
