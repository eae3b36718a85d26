"""Rebuild every ranking row, position and badge from the engagement tables."""
from __future__ import annotations

import argparse
import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from topbreja.core.settings import settings
from topbreja.db.session import SessionLocal
from topbreja.services.ranking import RankingWeights, rebuild_all

logger = logging.getLogger("topbreja.recompute")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Recompute beer rankings and badges")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute and print the ranking without saving it.",
    )
    parser.add_argument(
        "--top",
        type=int,
        default=10,
        help="Number of leaderboard entries to print (default: 10).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level.upper(), format="[recompute] %(levelname)s %(message)s")

    db = SessionLocal()
    try:
        ranked = rebuild_all(db, RankingWeights.from_settings())
        if args.dry_run:
            db.rollback()
        else:
            db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        print(f"[recompute] ERROR: {exc}", file=sys.stderr)
        return 1
    finally:
        db.close()

    for item in ranked[: max(args.top, 0)]:
        badge = f" [{item.badge}]" if item.badge else ""
        print(f"{item.position:>3}. {item.beer_id} score={item.score:.4f}{badge}")
    print(f"[recompute] {len(ranked)} active beers ranked{' (dry run)' if args.dry_run else ''}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
