"""
quarkdrive-fs - Main Entry Point

This module provides the CLI interface and wires up the Quark client, the
path cache and the filesystem facade to browse and read a Quark drive.
"""

import argparse
import asyncio
import logging
import os
import shlex
import sys
import threading

from .cache import PathCache
from .config import AppConfig, load_config
from .filesystem import DriveFileSystem
from .invalidation import PeriodicTrigger, SignalTrigger
from .logger import setup_logging
from .models import Entry
from .quark_client import QuarkDriveClient

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 1024 * 1024
READ_LINE_CHUNK_SIZE = 4096


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="quarkdrive-fs - Browse a Quark cloud drive by path",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  quarkdrive-fs ls /docs/reports
  quarkdrive-fs stat /docs/reports/q1.csv
  quarkdrive-fs cat /docs/reports/q1.csv --offset 0 --length 1024
  quarkdrive-fs shell --config config.ini
        """,
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", help="Path to configuration file")
    common.add_argument("--cookie", help="Quark cookie (default: $QUARK_COOKIE)")
    common.add_argument("--root", help="Remote directory exposed as / (default: /)")
    common.add_argument("--api-base-url", help="Quark API base URL")
    common.add_argument("--cache-size", type=int, help="Max cached directory listings (default: 1000)")
    common.add_argument("--cache-ttl", type=int, help="Listing idle lifetime in seconds (default: 600)")
    common.add_argument("--page-size", type=int, help="Entries per listing page (default: 50)")
    common.add_argument(
        "--refresh-interval",
        type=int,
        help="Seconds between full cache invalidations in the shell, 0 disables (default: 3600)",
    )
    common.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    ls_parser = subparsers.add_parser("ls", parents=[common], help="List a directory")
    ls_parser.add_argument("path", nargs="?", default="/")

    stat_parser = subparsers.add_parser("stat", parents=[common], help="Show entry metadata")
    stat_parser.add_argument("path")

    cat_parser = subparsers.add_parser("cat", parents=[common], help="Write file bytes to stdout")
    cat_parser.add_argument("path")
    cat_parser.add_argument("--offset", type=int, default=0, help="Start offset in bytes")
    cat_parser.add_argument("--length", type=int, default=None, help="Bytes to read (default: all)")

    subparsers.add_parser("shell", parents=[common], help="Interactive session")

    return parser.parse_args(argv)


def build_filesystem(config: AppConfig, with_triggers: bool = False):
    """
    Create the client and filesystem facade from configuration.

    Returns:
        (QuarkDriveClient, DriveFileSystem)
    """
    client = QuarkDriveClient(config.drive, config.connection)
    cache = PathCache(
        max_entries=config.cache.max_entries,
        ttl_seconds=config.cache.ttl_seconds,
    )
    triggers = []
    if with_triggers:
        triggers = [
            PeriodicTrigger(config.cache.refresh_interval_seconds),
            SignalTrigger(),
        ]
    fs = DriveFileSystem(
        client,
        cache=cache,
        root=config.drive.root,
        page_size=config.cache.page_size,
        triggers=triggers,
    )
    return client, fs


def format_entry(entry: Entry) -> str:
    kind = "d" if entry.is_dir else "-"
    modified = entry.modified.strftime("%Y-%m-%d %H:%M")
    return f"{kind} {entry.size:>12} {modified} {entry.name}"


async def list_dir(fs: DriveFileSystem, path: str, out) -> None:
    for entry in await fs.read_dir(path):
        out.write(format_entry(entry) + "\n")


async def show_entry(fs: DriveFileSystem, path: str, out) -> None:
    entry = await fs.metadata(path)
    out.write(f"Path:     {path}\n")
    out.write(f"Id:       {entry.id}\n")
    out.write(f"Type:     {'directory' if entry.is_dir else 'file'}\n")
    out.write(f"Size:     {entry.size}\n")
    out.write(f"Created:  {entry.created.isoformat()}\n")
    out.write(f"Modified: {entry.modified.isoformat()}\n")


async def copy_file(fs: DriveFileSystem, path: str, out, offset: int = 0, length: int | None = None) -> int:
    """Stream a file (or a byte range of it) to a binary stream. Returns bytes written."""
    handle = await fs.open(path)
    handle.seek(offset)
    remaining = handle.entry.size - offset if length is None else length
    written = 0
    while remaining > 0:
        data = await handle.read(min(READ_CHUNK_SIZE, remaining))
        if not data:
            break
        out.write(data)
        written += len(data)
        remaining -= len(data)
    return written


def _load(args) -> AppConfig:
    config = load_config(
        config_path=args.config,
        cookie=args.cookie,
        root=args.root,
        api_base_url=args.api_base_url,
        cache_size=args.cache_size,
        cache_ttl=args.cache_ttl,
        page_size=args.page_size,
        refresh_interval=args.refresh_interval,
        debug=args.verbose,
    )
    setup_logging(config.logging)
    return config


async def _run(config: AppConfig, action) -> None:
    client, fs = build_filesystem(config)
    client.connect()
    try:
        await action(fs)
    finally:
        client.disconnect()


def cmd_ls(args):
    """Handle the ls command."""
    try:
        config = _load(args)
        asyncio.run(_run(config, lambda fs: list_dir(fs, args.path, sys.stdout)))
        return 0
    except (ValueError, OSError) as e:
        print(f"[ERROR] {e}")
        return 1


def cmd_stat(args):
    """Handle the stat command."""
    try:
        config = _load(args)
        asyncio.run(_run(config, lambda fs: show_entry(fs, args.path, sys.stdout)))
        return 0
    except (ValueError, OSError) as e:
        print(f"[ERROR] {e}")
        return 1


def cmd_cat(args):
    """Handle the cat command."""
    try:
        config = _load(args)
        out = sys.stdout.buffer
        asyncio.run(
            _run(config, lambda fs: copy_file(fs, args.path, out, args.offset, args.length))
        )
        out.flush()
        return 0
    except (ValueError, OSError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1


class StdinLineReader:
    """
    Line source for the interactive shell.

    A daemon thread reads the raw stdin descriptor and hands complete lines to
    the event loop through a queue. Awaiting the next line can be cancelled at
    any time (Ctrl+C): nothing joins the reader thread on shutdown, and it
    never holds the lock of sys.stdin's buffered reader.
    """

    def __init__(self, fd: int | None = None, out=None, encoding: str = "utf-8"):
        self.fd = sys.stdin.fileno() if fd is None else fd
        self.out = sys.stdout if out is None else out
        self.encoding = encoding
        self._queue: asyncio.Queue | None = None
        self._thread: threading.Thread | None = None

    def _start(self) -> None:
        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._thread = threading.Thread(
            target=self._pump,
            args=(loop, self._queue),
            name="ShellInputThread",
            daemon=True,
        )
        self._thread.start()

    def _pump(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue) -> None:
        pending = b""
        while True:
            try:
                chunk = os.read(self.fd, READ_LINE_CHUNK_SIZE)
            except OSError as e:
                logger.warning("Reading shell input failed: %s", e)
                chunk = b""

            if chunk:
                pending += chunk
                *lines, pending = pending.split(b"\n")
            else:
                # None marks end of input
                lines = [pending, None] if pending else [None]

            try:
                for line in lines:
                    loop.call_soon_threadsafe(queue.put_nowait, line)
            except RuntimeError:
                # Event loop already closed
                return
            if not chunk:
                return

    async def __call__(self, prompt: str) -> str:
        """
        Print `prompt` and wait for the next line.

        Raises:
            EOFError: Once stdin is exhausted.
        """
        if self._thread is None:
            self._start()
        self.out.write(prompt)
        self.out.flush()

        line = await self._queue.get()
        if line is None:
            self._queue.put_nowait(None)
            raise EOFError
        return line.decode(self.encoding, errors="replace").rstrip("\r")


SHELL_HELP = """Commands:
  ls [PATH]          List a directory
  stat PATH          Show entry metadata
  cat PATH           Print a file
  invalidate PATH    Drop one cached listing
  refresh            Drop every cached listing
  quit               Leave the shell
"""


async def run_shell(fs: DriveFileSystem, read_line=None, out=None) -> None:
    """
    Interactive loop.

    `read_line` is an async callable taking the prompt and returning one line
    (EOFError at end of input); it defaults to a StdinLineReader. While it
    waits, the periodic and signal triggers keep running on the event loop.
    """
    if out is None:
        out = sys.stdout
    if read_line is None:
        read_line = StdinLineReader(out=out)

    await fs.start()
    try:
        while True:
            try:
                line = await read_line("quark> ")
            except EOFError:
                break
            try:
                parts = shlex.split(line)
            except ValueError as e:
                out.write(f"[ERROR] {e}\n")
                continue
            if not parts:
                continue
            command, rest = parts[0], parts[1:]

            try:
                if command in ("quit", "exit"):
                    break
                elif command == "ls":
                    await list_dir(fs, rest[0] if rest else "/", out)
                elif command == "stat" and rest:
                    await show_entry(fs, rest[0], out)
                elif command == "cat" and rest:
                    handle = await fs.open(rest[0])
                    data = await handle.read_all()
                    out.write(data.decode("utf-8", errors="replace") + "\n")
                elif command == "invalidate" and rest:
                    fs.invalidate(rest[0])
                elif command == "refresh":
                    fs.invalidate_all()
                else:
                    out.write(SHELL_HELP)
            except (OSError, ValueError) as e:
                out.write(f"[ERROR] {e}\n")
    finally:
        await fs.stop()


def cmd_shell(args):
    """
    Handle the shell command.

    Keeps one cache alive across commands. The cache is fully invalidated on
    the configured interval and on SIGHUP.
    """
    try:
        config = _load(args)
    except (ValueError, FileNotFoundError) as e:
        print(f"[ERROR] {e}")
        return 1

    from . import __version__

    logger.info("Starting quarkdrive-fs v%s shell", __version__)
    client, fs = build_filesystem(config, with_triggers=True)
    try:
        client.connect()
        asyncio.run(run_shell(fs))
        return 0
    except KeyboardInterrupt:
        print()
        logger.info("Received interrupt, stopping...")
        return 0
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        print(f"[ERROR] Fatal error: {e}")
        return 1
    finally:
        client.disconnect()


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    if args.command == "ls":
        return cmd_ls(args)
    elif args.command == "stat":
        return cmd_stat(args)
    elif args.command == "cat":
        return cmd_cat(args)
    elif args.command == "shell":
        return cmd_shell(args)
    else:
        print("Usage: quarkdrive-fs <command> [options]")
        print()
        print("Commands:")
        print("  ls      List a directory")
        print("  stat    Show entry metadata")
        print("  cat     Write file bytes to stdout")
        print("  shell   Interactive session")
        print()
        print("Run 'quarkdrive-fs <command> --help' for more information.")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
