#!/usr/bin/env python3
"""
Google Drive video sync CLI.

Downloads new and changed videos from the configured Drive folder,
generates previews with ffmpeg, and publishes videos.json.

Usage:
    python scripts/sync_videos.py              # Sync and publish videos.json
    python scripts/sync_videos.py --cleanup    # Also remove videos no longer on Drive
    python scripts/sync_videos.py --config     # Show current configuration

Always exits 0 once ffmpeg is found, even if Drive is unreachable, so an
automated build is never broken by a failed sync.
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gallery.config import get_settings
from gallery.sync.errors import ConfigError
from gallery.sync.orchestrator import SyncOrchestrator, SyncStats

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

EPILOG = """
Environment Variables:
  GOOGLE_DRIVE_FOLDER_ID           - Google Drive folder ID containing videos
  GOOGLE_SERVICE_ACCOUNT_KEY_FILE  - Path to a service account JSON key file
  GOOGLE_SERVICE_ACCOUNT_KEY       - Service account JSON key as a string
  OR
  GOOGLE_CLIENT_ID                 - OAuth2 client ID
  GOOGLE_CLIENT_SECRET             - OAuth2 client secret
  GOOGLE_REFRESH_TOKEN             - OAuth2 refresh token

Without credentials the sync runs in demo mode and publishes the videos
already present in the local videos directory.

Examples:
  python scripts/sync_videos.py
  python scripts/sync_videos.py --cleanup
"""


def _mask(value: str) -> str:
    return "***" + value[-4:] if value else "Not set"


def show_config():
    """Display current sync configuration."""
    settings = get_settings()

    print("\n=== Sync Configuration ===\n")
    print(f"Drive folder ID: {settings.google_drive_folder_id or 'Not set'}")
    print(f"Credential mode: {settings.credential_mode or 'None (demo mode)'}")
    print(f"  Service account key file: {settings.google_service_account_key_file or 'Not set'}")
    print(f"  Service account key: {'Set' if settings.google_service_account_key else 'Not set'}")
    print(f"  OAuth client ID: {settings.google_client_id or 'Not set'}")
    print(f"  OAuth refresh token: {_mask(settings.google_refresh_token)}")
    print(f"\nVideos dir: {settings.videos_dir}")
    print(f"Preview flavor: {settings.preview_flavor} -> {settings.derived_dir}")
    print(f"Manifest: {settings.manifest_path}")
    print(f"Cache: {settings.cache_path}")
    print(f"ffmpeg: {settings.ffmpeg_path}")
    print(f"Workers: {settings.sync_workers}")


def print_stats(stats: SyncStats):
    print("\n" + "=" * 60)
    print("SYNC COMPLETE")
    print("=" * 60)
    print(stats)

    if stats.errors:
        print("\nErrors:")
        for error in stats.errors[:10]:
            print(f"  - {error}")
        if len(stats.errors) > 10:
            print(f"  ... and {len(stats.errors) - 10} more errors")


def run_sync(cleanup: bool = False) -> int:
    """
    Run the sync process.

    Returns:
        Process exit code
    """
    settings = get_settings()

    print("\n" + "=" * 60)
    print("Google Drive Video Sync")
    print("=" * 60)
    print(f"Mode: {'SYNC + CLEANUP' if cleanup else 'SYNC'}")
    print(f"Videos dir: {settings.videos_dir}")
    print()

    orchestrator = SyncOrchestrator(settings)

    try:
        orchestrator.check_dependencies()
    except ConfigError as e:
        print(f"\nConfiguration error: {e}")
        return 1

    try:
        stats = orchestrator.run(cleanup=cleanup)
    except ConfigError as e:
        print(f"\nConfiguration error: {e}")
        return 1
    except Exception as e:
        # Keep automated builds going
        print(f"\nSync failed: {e}")
        logger.exception("Sync error")
        return 0

    print_stats(stats)
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Google Drive Video Sync Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )

    parser.add_argument(
        "--cleanup",
        action="store_true",
        help="Remove local videos that are not in Google Drive",
    )
    parser.add_argument(
        "--config",
        action="store_true",
        help="Show current configuration and exit",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.config:
        show_config()
        return 0

    return run_sync(cleanup=args.cleanup)


if __name__ == "__main__":
    sys.exit(main())
