#!/usr/bin/env python3
"""Run the batch matching worker for one job outside Dagster.

Usage:
    poetry run python scripts/run_match_for_job.py <job_uuid>
    poetry run python scripts/run_match_for_job.py <job_uuid> --threshold 60 --resume-policy never
    poetry run python scripts/run_match_for_job.py <job_uuid> --send-emails

Steps:
    1. Score every active candidate with job alerts on
    2. Record matches at or above the threshold and queue notifications
    3. Optionally send the queued emails for this run
    4. Print the run summary and LLM cost
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
load_dotenv()

from job_recommendations.matching.scorer import MatchScorer, ResumePolicy  # noqa: E402
from job_recommendations.matching.worker import (  # noqa: E402
    DEFAULT_CONCURRENCY,
    DEFAULT_PAGE_SIZE,
    NOTIFICATION_THRESHOLD,
    run_match_for_job,
)
from job_recommendations.notifications import dispatch_pending_notifications  # noqa: E402
from job_recommendations.resources.email import EmailNotificationResource  # noqa: E402
from job_recommendations.resources.matching_store import MatchingStoreResource  # noqa: E402
from job_recommendations.resources.openrouter import OpenRouterResource  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")


def main():
    parser = argparse.ArgumentParser(description="Match one job against all eligible candidates")
    parser.add_argument("job_id", help="Job posting UUID")
    parser.add_argument("--threshold", type=int, default=NOTIFICATION_THRESHOLD)
    parser.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE)
    parser.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY)
    parser.add_argument(
        "--resume-policy",
        choices=[p.value for p in ResumePolicy],
        default=ResumePolicy.ALWAYS.value,
    )
    parser.add_argument("--send-emails", action="store_true", help="Send this run's emails")
    args = parser.parse_args()

    openrouter = OpenRouterResource(api_key=os.environ["OPENROUTER_API_KEY"])
    store = MatchingStoreResource()
    scorer = MatchScorer(openrouter, resume_policy=args.resume_policy)

    print(f"\n{'='*80}")
    print(f"  CANDIDATE MATCHING: {args.job_id}")
    print(f"{'='*80}")

    summary = asyncio.run(
        run_match_for_job(
            args.job_id,
            store,
            scorer,
            threshold=args.threshold,
            page_size=args.page_size,
            concurrency=args.concurrency,
        )
    )

    print(f"\n  Status:               {summary.status.value}")
    print(f"  Run key:              {summary.run_key}")
    print(f"  Candidates seen:      {summary.candidates_seen}")
    print(f"  Embeddings refreshed: {summary.embeddings_refreshed}")
    print(f"  Recorded (>= {summary.threshold}):     {summary.recorded}")
    print(f"  Queued for email:     {summary.notified}")
    print(f"  Failed:               {summary.failed}")
    for outcome in summary.outcomes:
        if outcome.error:
            print(f"    {outcome.candidate_id} [{outcome.stage}] {outcome.error[:120]}")

    costs = openrouter.get_run_costs()
    print(f"\n  LLM calls: {costs.api_calls}, tokens: {costs.total_tokens}, "
          f"cost: ${float(costs.total_cost_usd):.4f}")

    if args.send_emails and summary.notified:
        dispatched = dispatch_pending_notifications(
            store, EmailNotificationResource(), run_key=summary.run_key
        )
        print(f"\n  Emails sent: {dispatched.sent}/{dispatched.pending} ({dispatched.failed} failed)")


if __name__ == "__main__":
    main()
