#!/usr/bin/env python3
"""
Recalculate keyword matches for all comments and posts.
Run after bulk keyword changes; safe to re-run after an interruption.
"""

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.config import get_config
from core.logger import get_logger, setup_logging
from modules.database.storage import MatchStorage
from modules.keywords.manager import KeywordManager


def main() -> int:
    """Run one full recalculation and print the counters."""
    parser = argparse.ArgumentParser(description="Recalculate keyword matches")
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Window size (defaults to MATCH_BATCH_SIZE)"
    )
    args = parser.parse_args()

    config = get_config()
    setup_logging(log_level=config.log_level, log_file=config.log_file)
    logger = get_logger(__name__)

    manager = KeywordManager(MatchStorage())
    try:
        stats = manager.recalculate_keyword_matches(batch_size=args.batch_size)
    except Exception as e:
        logger.error("Keyword match recalculation failed", error=str(e), exc_info=True)
        return 1

    print(json.dumps(stats.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
