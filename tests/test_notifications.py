"""Tests for the SMTP resource and outbox dispatch."""

import smtplib
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from job_recommendations.errors import ExternalServiceError
from job_recommendations.notifications import DispatchSummary, dispatch_pending_notifications
from job_recommendations.resources.email import EmailNotificationResource

CANDIDATE = SimpleNamespace(id="cand-1", first_name="Ada", email="ada@example.com")
JOB = SimpleNamespace(
    id="job-1", title="Data Engineer", company="Acme", location="Berlin", is_remote=True
)


def make_email(**overrides) -> EmailNotificationResource:
    settings = {
        "host": "smtp.example.com",
        "port": 587,
        "user": "mailer",
        "password": "secret",
        "from_address": "jobs@example.com",
        "frontend_url": "https://jobs.example.com/",
    }
    settings.update(overrides)
    return EmailNotificationResource(**settings)


class TestEmailNotificationResource:
    """Tests for message building and SMTP delivery."""

    def test_build_message(self):
        message = make_email().build_message(CANDIDATE, JOB, 84)
        body = message.get_payload(decode=True).decode("utf-8")

        assert message["Subject"] == "Job Recommendation - Data Engineer at Acme"
        assert message["To"] == "ada@example.com"
        assert message["From"] == "jobs@example.com"
        assert "Hello Ada," in body
        assert "Match Score: 84%" in body
        assert "Location: Berlin (remote)" in body
        assert "https://jobs.example.com/jobs/job-1" in body

    @patch("job_recommendations.resources.email.smtplib.SMTP")
    def test_send_uses_starttls_and_login(self, mock_smtp):
        server = mock_smtp.return_value.__enter__.return_value

        make_email().send_recommendation(CANDIDATE, JOB, 84)

        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=30.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer", "secret")
        from_address, recipients, _ = server.sendmail.call_args.args
        assert from_address == "jobs@example.com"
        assert recipients == ["ada@example.com"]

    @patch("job_recommendations.resources.email.smtplib.SMTP")
    def test_login_skipped_without_user(self, mock_smtp):
        server = mock_smtp.return_value.__enter__.return_value

        make_email(user="").send_recommendation(CANDIDATE, JOB, 84)

        server.login.assert_not_called()

    @patch("job_recommendations.resources.email.smtplib.SMTP")
    def test_smtp_error_is_external_service_error(self, mock_smtp):
        server = mock_smtp.return_value.__enter__.return_value
        server.sendmail.side_effect = smtplib.SMTPRecipientsRefused({})

        with pytest.raises(ExternalServiceError, match="Recommendation email failed"):
            make_email().send_recommendation(CANDIDATE, JOB, 84)

    @patch("job_recommendations.resources.email.smtplib.SMTP")
    def test_unconfigured_raises_without_connecting(self, mock_smtp):
        with pytest.raises(ExternalServiceError, match="SMTP not configured"):
            make_email(host="").send_recommendation(CANDIDATE, JOB, 84)
        mock_smtp.assert_not_called()

    def test_candidate_without_email_raises(self):
        with pytest.raises(ExternalServiceError, match="no email"):
            make_email().send_recommendation(SimpleNamespace(id="cand-2", email=None), JOB, 84)

    def test_port_from_environment(self, monkeypatch):
        monkeypatch.setenv("SMTP_PORT", "2525")
        assert EmailNotificationResource().port == 2525
        monkeypatch.setenv("SMTP_PORT", "not-a-port")
        assert EmailNotificationResource().port == 587


class TestDispatchPendingNotifications:
    def _notification(self, number):
        return SimpleNamespace(
            id=f"n-{number}",
            job_id="job-1",
            candidate_id=f"cand-{number}",
            candidate=SimpleNamespace(id=f"cand-{number}", email=f"c{number}@example.com"),
            job=JOB,
            match_score=70 + number,
        )

    def test_failures_are_marked_and_skipped(self):
        store = MagicMock()
        store.get_pending_notifications.return_value = [self._notification(i) for i in range(3)]
        email = MagicMock()
        email.send_recommendation.side_effect = [None, ExternalServiceError("550"), None]

        summary = dispatch_pending_notifications(store, email, run_key="run-1")

        assert summary == DispatchSummary(pending=3, sent=2, failed=1)
        store.get_pending_notifications.assert_called_once_with(run_key="run-1", limit=500)
        assert [c.args[0] for c in store.mark_notification_sent.call_args_list] == ["n-0", "n-2"]
        store.mark_notification_failed.assert_called_once_with("n-1", "550")

    def test_nothing_pending(self):
        store = MagicMock()
        store.get_pending_notifications.return_value = []

        summary = dispatch_pending_notifications(store, MagicMock())

        assert summary.to_metadata() == {"pending": 0, "sent": 0, "failed": 0}

    def test_unexpected_row_error_does_not_stop_dispatch(self):
        """Test a broken row and a failing status write leave the other rows delivered."""
        rows = [self._notification(i) for i in range(3)]
        store = MagicMock()
        store.get_pending_notifications.return_value = rows
        store.mark_notification_sent.side_effect = [RuntimeError("connection reset"), None]
        email = MagicMock()
        email.send_recommendation.side_effect = [None, AttributeError("candidate not loaded"), None]

        summary = dispatch_pending_notifications(store, email)

        assert summary == DispatchSummary(pending=3, sent=2, failed=1)
        assert email.send_recommendation.call_count == 3
        assert [c.args[0] for c in store.mark_notification_sent.call_args_list] == ["n-0", "n-2"]
        store.mark_notification_failed.assert_called_once_with(
            "n-1", "AttributeError: candidate not loaded"
        )
