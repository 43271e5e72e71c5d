#!/usr/bin/env python3
"""
Counter Reconciliation Script

Recomputes every denormalized counter (review likes/comments, user totals,
book totals and average ratings) from the detail tables.

Usage:
    python scripts/reconcile_counters.py
    python scripts/reconcile_counters.py --dry-run   # compute, then roll back

Safe to run while the API is serving; each table is fixed with a single
UPDATE statement.
"""

import argparse
import logging
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from bookreviewer.database import SessionLocal
from bookreviewer.services.counters import reconcile_counters

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main(dry_run: bool = False) -> None:
    db = SessionLocal()
    try:
        touched = reconcile_counters(db)
        if dry_run:
            db.rollback()
            logger.info(f"Dry run, rolled back. Rows that would be rewritten: {touched}")
        else:
            db.commit()
            logger.info(f"Counters reconciled: {touched}")
    except Exception:
        db.rollback()
        logger.exception("Counter reconciliation failed")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Recompute denormalized counters")
    parser.add_argument("--dry-run", action="store_true", help="Roll back instead of committing")
    args = parser.parse_args()
    main(dry_run=args.dry_run)
