"""
Main entry point for the drive filesystem adapter.
"""
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from loguru import logger

from .models.config import DriveConfig
from .models.data_models import EntryKind, HashKind, SourceInfo
from .models.interfaces import HashProvider, Lister, Uploader
from .services.change_notifier import CancelToken, PollIntervalChannel
from .services.drive_fs import DriveFs


WATCH_STOP_TIMEOUT = 10.0


def setup_logging():
    """Configure logging for the drive adapter."""
    # Remove default logger
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level="INFO"
    )

    log_dir = Path("logs")
    log_dir.mkdir(exist_ok=True)

    logger.add(
        "logs/drive_fs.log",
        rotation="10 MB",
        retention="7 days",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG"
    )


def run_list(drive: Lister, path: str):
    """List a remote directory and print one line per entry."""
    entries = drive.list(path)
    for entry in entries:
        marker = "d" if entry.kind == EntryKind.FOLDER else "-"
        print(f"{marker} {entry.size:>12} {entry.name}")
    return entries


def run_put(drive: Uploader, local_path: str, remote: str):
    """Upload a local file to the remote path."""
    stat = os.stat(local_path)
    src = SourceInfo(
        remote=remote,
        size=stat.st_size,
        mod_time=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
    )
    with open(local_path, "rb") as source:
        obj = drive.put(source, src)
    logger.info(f"Uploaded {local_path} -> {remote} (id {obj.id}, {obj.size} bytes)")
    return obj


def run_hash(drive: HashProvider, remote: str):
    """Print the server-side hash of a remote file."""
    value = drive.hash(remote, HashKind.DRIVE)
    print(f"{value}  {remote}")
    return value


def run_watch(drive: DriveFs, config: DriveConfig):
    """Print remote changes until interrupted."""
    cancel = CancelToken()
    poll_interval = PollIntervalChannel()

    def on_change(path: str, kind: EntryKind):
        print(f"{kind.value}: {path}")

    # Populate the directory cache so events under the root resolve to paths
    drive.list("")
    notifier = drive.change_notify(cancel, on_change, poll_interval)
    poll_interval.send(config.poll_interval)
    try:
        while not notifier.wait_closed(timeout=1.0):
            pass
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down gracefully")
    finally:
        poll_interval.close()
        notifier.wait_closed(timeout=WATCH_STOP_TIMEOUT)


def print_help():
    """Print help information for the CLI."""
    help_text = """
Drive FS - Command Line Interface

USAGE:
    python -m drive_fs.main [COMMAND] [ARGS]

COMMANDS:
    list [PATH]             List a remote directory (default: root)
    put LOCAL REMOTE        Upload a local file to a remote path
    hash REMOTE             Show the server-side hash of a remote file
    watch                   Print remote changes until interrupted
    help                    Show this help message

ENVIRONMENT VARIABLES:
    DRIVE_API_URL           Drive server URL (default: http://localhost:8080)
    DRIVE_ACCESS_TOKEN      Bearer token for the drive API
    DRIVE_ROOT_FOLDER_ID    Folder id of the root (default: root)
    DRIVE_PAGE_SIZE         Listing page size (default: 500)
    DRIVE_CHUNK_SIZE        Upload chunk size, e.g. 64M (default: 500M)
    DRIVE_CHANNEL_ID        Storage channel for uploads (default: 0)
    DRIVE_ENCRYPT_FILES     Ask the server to encrypt uploads (default: false)
    DRIVE_RANDOM_CHUNK_NAME Use random names for upload parts (default: false)
    DRIVE_POLL_INTERVAL     Change polling interval in seconds (default: 60)
"""
    print(help_text)


def main():
    """Main entry point with command line argument handling."""
    setup_logging()

    if len(sys.argv) < 2:
        print_help()
        sys.exit(1)

    command = sys.argv[1].lower()
    args = sys.argv[2:]

    if command in ["help", "--help", "-h"]:
        print_help()
        return

    try:
        config = DriveConfig.from_env()
        drive = DriveFs(config)

        if command == "list":
            run_list(drive, args[0] if args else "")
        elif command == "put" and len(args) == 2:
            run_put(drive, args[0], args[1])
        elif command == "hash" and len(args) == 1:
            run_hash(drive, args[0])
        elif command == "watch":
            run_watch(drive, config)
        else:
            logger.error(f"Unknown command or wrong arguments: {' '.join(sys.argv[1:])}")
            logger.error("Use 'help' to see available commands")
            print_help()
            sys.exit(1)

    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down gracefully")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Command failed: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
