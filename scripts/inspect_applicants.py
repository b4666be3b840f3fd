#!/usr/bin/env python3
"""Print the ranked applicant list for a job, scoring unscored applications first.

Usage:
    poetry run python scripts/inspect_applicants.py <job_uuid>
    poetry run python scripts/inspect_applicants.py <job_uuid> --sort-by applied_at --order asc
    poetry run python scripts/inspect_applicants.py <job_uuid> --page 2 --limit 50 --dry-run

--dry-run scores unscored applications but does not write the scores back.
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
load_dotenv()

from job_recommendations.errors import NotFoundError  # noqa: E402
from job_recommendations.matching.ranker import SORT_FIELDS, rank_applicants  # noqa: E402
from job_recommendations.matching.scorer import MatchScorer  # noqa: E402
from job_recommendations.resources.matching_store import MatchingStoreResource  # noqa: E402
from job_recommendations.resources.openrouter import OpenRouterResource  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def main():
    parser = argparse.ArgumentParser(description="Rank a job's applicants")
    parser.add_argument("job_id", help="Job posting UUID")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--limit", type=int, default=20)
    parser.add_argument("--sort-by", choices=SORT_FIELDS, default="match_score")
    parser.add_argument("--order", choices=("asc", "desc"), default="desc")
    parser.add_argument("--dry-run", action="store_true", help="Do not save backfilled scores")
    args = parser.parse_args()

    openrouter = OpenRouterResource(api_key=os.getenv("OPENROUTER_API_KEY", ""))
    scorer = MatchScorer(openrouter)

    try:
        ranked = asyncio.run(
            rank_applicants(
                args.job_id,
                MatchingStoreResource(),
                scorer,
                page=args.page,
                limit=args.limit,
                sort_by=args.sort_by,
                order=args.order,
                persist=not args.dry_run,
            )
        )
    except NotFoundError as e:
        print(f"  {e}")
        sys.exit(1)

    print(f"\n  {ranked.total} applicants, page {ranked.page} (limit {ranked.limit}), "
          f"sorted by {ranked.sort_by} {ranked.order}\n")
    print(f"  {'Score':>5}  {'Name':<30} {'Status':<10} {'Applied':<20} Skills (matched / missing)")
    print(f"  {'-'*5}  {'-'*30} {'-'*10} {'-'*20} {'-'*30}")
    for a in ranked.applicants:
        applied = a.applied_at.strftime("%Y-%m-%d %H:%M") if a.applied_at else "-"
        marker = "*" if a.backfilled else " "
        print(
            f"  {a.match_score:>4}{marker}  {(a.candidate_name or '-')[:30]:<30} "
            f"{(a.status or '-'):<10} {applied:<20} "
            f"{', '.join(a.matched_skills) or '-'} / {', '.join(a.missing_skills) or '-'}"
        )
    if any(a.backfilled for a in ranked.applicants):
        print("\n  * scored just now")


if __name__ == "__main__":
    main()
