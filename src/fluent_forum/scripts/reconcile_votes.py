# src/fluent_forum/scripts/reconcile_votes.py
"""
Repair job for cached vote counters.

Recomputes the ``votes`` counter of questions and answers from the vote
ledger and overwrites any counter that drifted. Run it after an incident
or on a schedule:

    python -m fluent_forum.scripts.reconcile_votes --kind Answer --dry-run
"""

from __future__ import annotations

import argparse
import logging
import sys

from fluent_forum.db.session import SessionLocal
from fluent_forum.models.vote import TargetKind
from fluent_forum.services.voting import ReconcileResult, VoteService


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile cached vote counts with the ledger")
    parser.add_argument(
        "--kind",
        choices=[kind.value for kind in TargetKind],
        help="Only reconcile this content kind",
    )
    parser.add_argument("--id", type=int, dest="target_id", help="Only reconcile this target")
    parser.add_argument("--dry-run", action="store_true", help="Report drift without writing")
    args = parser.parse_args(argv)
    if args.target_id is not None and args.kind is None:
        parser.error("--id requires --kind")
    return args


def reconcile(argv: list[str] | None = None) -> list[ReconcileResult]:
    """Run the reconciliation described by ``argv`` and return the per-target results."""
    args = _parse_args(argv)
    db = SessionLocal()
    try:
        service = VoteService(db)
        if args.target_id is not None:
            return [service.reconcile(args.kind, args.target_id, dry_run=args.dry_run)]
        return service.reconcile_all(args.kind, dry_run=args.dry_run)
    finally:
        db.close()


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    results = reconcile(argv)
    drifted = [result for result in results if result.drifted]
    for result in drifted:
        print(
            f"{result.target_kind.value} {result.target_id}: "
            f"{result.previous} -> {result.votes}"
        )
    print(f"Checked {len(results)} targets, {len(drifted)} drifted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
