"""CLI entry point."""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from common.logging_config import setup_logging
from cli.config import Config, DEFAULT_CONFIG_PATH
from cli.share_client import ShareClient, ShareClientError
from cli.utils import format_file_size


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sharedrop", description="Upload files into a share")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to config file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    upload = subparsers.add_parser("upload", help="Upload files to a share")
    upload.add_argument("share_id")
    upload.add_argument("paths", nargs="+", type=Path)

    complete = subparsers.add_parser("complete", help="Lock a share against further uploads")
    complete.add_argument("share_id")

    revert = subparsers.add_parser("revert", help="Reopen a completed share")
    revert.add_argument("share_id")

    return parser


def run_upload(client: ShareClient, share_id: str, paths: List[Path]) -> int:
    failures = 0
    for path in paths:
        if not path.is_file():
            print(f"✗ {path}: not a file")
            failures += 1
            continue

        def show_progress(sent: int, total: int) -> None:
            percent = (sent / total * 100) if total else 100.0
            print(f"\rUploading {path.name}: {format_file_size(sent)} / {format_file_size(total)} ({percent:.1f}%)",
                  end="", flush=True)

        try:
            result = client.upload_file(share_id, path, on_progress=show_progress)
            print(f"\r✓ {path.name} uploaded ({format_file_size(result['bytes_received'])}) id={result['id']}")
        except ShareClientError as e:
            print(f"\r✗ {path.name}: {e.detail}" + ("" if e.terminal else " (retry later)"))
            failures += 1
            if e.terminal:
                break

    return 1 if failures else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for CLI."""
    args = build_parser().parse_args(argv)

    log_level = 'DEBUG' if args.debug else os.getenv('LOG_LEVEL', 'WARNING')
    logger = setup_logging('cli', log_level=log_level)

    client = ShareClient(Config(args.config))
    try:
        if args.command == "upload":
            return run_upload(client, args.share_id, args.paths)

        if args.command == "complete":
            share = client.complete_share(args.share_id)
            print(f"✓ Share {share['id']} completed with {len(share['files'])} files")
        elif args.command == "revert":
            share = client.revert_complete(args.share_id)
            print(f"✓ Share {share['id']} reopened for uploads")
        return 0
    except ShareClientError as e:
        logger.debug(f"Command {args.command} failed: code={e.code} status={e.status_code}")
        print(f"✗ {e.detail}")
        return 1
    finally:
        client.close()


if __name__ == "__main__":
    sys.exit(main())
