"""Delivery of queued recommendation notifications."""

import logging
from dataclasses import dataclass
from typing import Any

from job_recommendations.errors import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass
class DispatchSummary:
    pending: int = 0
    sent: int = 0
    failed: int = 0

    def to_metadata(self) -> dict:
        return {"pending": self.pending, "sent": self.sent, "failed": self.failed}


def dispatch_pending_notifications(
    store: Any, email: Any, run_key: str | None = None, limit: int = 500
) -> DispatchSummary:
    """Send pending outbox rows (optionally only one run's) and record each outcome.

    A delivery failure marks that row failed and moves on; nothing is retried
    here. An error on one row, including one while recording its outcome, is
    logged with the job and candidate ids and never stops the remaining rows.
    """
    pending = store.get_pending_notifications(run_key=run_key, limit=limit)
    summary = DispatchSummary(pending=len(pending))

    for notification in pending:
        job_id = getattr(notification, "job_id", None)
        candidate_id = getattr(notification, "candidate_id", None)
        error = None
        try:
            email.send_recommendation(
                notification.candidate, notification.job, notification.match_score
            )
        except ExternalServiceError as e:
            logger.warning(
                "Recommendation email failed for job %s candidate %s: %s", job_id, candidate_id, e
            )
            error = str(e)
        except Exception as e:
            logger.error(
                "Recommendation email errored for job %s candidate %s: %s", job_id, candidate_id, e
            )
            error = f"{type(e).__name__}: {e}"

        try:
            if error is None:
                store.mark_notification_sent(notification.id)
            else:
                store.mark_notification_failed(notification.id, error)
        except Exception as e:
            # Row stays pending and is picked up by the next dispatch
            logger.error(
                "Could not record delivery outcome for job %s candidate %s: %s",
                job_id,
                candidate_id,
                e,
            )

        if error is None:
            summary.sent += 1
        else:
            summary.failed += 1

    return summary
