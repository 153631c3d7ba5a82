#!/usr/bin/env python3
"""
Continuous Google Drive sync.

Runs the sync (with cleanup) every SYNC_INTERVAL_SECONDS until interrupted
with Ctrl+C or SIGTERM.

Usage:
    python scripts/auto_sync.py
"""

import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gallery.config import get_settings
from gallery.sync.errors import ConfigError
from gallery.sync.orchestrator import SyncOrchestrator
from gallery.sync.runner import ContinuousSync

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    orchestrator = SyncOrchestrator(settings)

    try:
        orchestrator.check_dependencies()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    runner = ContinuousSync(orchestrator=orchestrator, settings=settings)
    runner.install_signal_handlers()
    runner.start()
    logger.info(f"Completed {runner.runs} syncs ({runner.failures} failed)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
