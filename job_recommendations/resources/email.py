"""SMTP resource for job recommendation emails."""

import os
import smtplib
from email.mime.text import MIMEText
from typing import Any

from dagster import ConfigurableResource, get_dagster_logger
from pydantic import Field

from job_recommendations.errors import ExternalServiceError


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name, "").strip()
    try:
        return int(value) if value else default
    except ValueError:
        return default


class EmailNotificationResource(ConfigurableResource):
    """Sends plain-text "we found a job for you" emails over SMTP (STARTTLS)."""

    host: str = Field(
        default_factory=lambda: os.getenv("SMTP_HOST", ""),
        description="SMTP server host",
    )
    port: int = Field(
        default_factory=lambda: _int_env("SMTP_PORT", 587),
        description="SMTP server port",
    )
    user: str = Field(
        default_factory=lambda: os.getenv("SMTP_USER", ""),
        description="SMTP login user",
    )
    password: str = Field(
        default_factory=lambda: os.getenv("SMTP_PASSWORD", ""),
        description="SMTP login password",
    )
    from_address: str = Field(
        default_factory=lambda: os.getenv("SMTP_FROM", "") or os.getenv("SMTP_USER", ""),
        description="Sender address",
    )
    frontend_url: str = Field(
        default_factory=lambda: os.getenv("FRONTEND_URL", "http://localhost:3000"),
        description="Base URL for job links",
    )
    timeout: float = Field(default=30.0, description="SMTP connection timeout in seconds")

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.from_address)

    def build_message(self, candidate: Any, job: Any, match_score: int) -> MIMEText:
        """Build the recommendation email for one candidate and job."""
        first_name = getattr(candidate, "first_name", None) or "there"
        company = getattr(job, "company", None) or "a company"
        location = getattr(job, "location", None) or "Not specified"
        if getattr(job, "is_remote", False):
            location = f"{location} (remote)"
        link = f"{self.frontend_url.rstrip('/')}/jobs/{job.id}"

        body = (
            f"Hello {first_name},\n\n"
            "We found a job that matches your profile!\n\n"
            f"Job Title: {job.title}\n"
            f"Company: {company}\n"
            f"Location: {location}\n"
            f"Match Score: {match_score}%\n\n"
            f"Click here to apply: {link}\n\n"
            "Best regards,\n"
            "Job Recommendations Team"
        )
        message = MIMEText(body, "plain", "utf-8")
        message["Subject"] = f"Job Recommendation - {job.title} at {company}"
        message["From"] = self.from_address
        message["To"] = candidate.email
        return message

    def send_recommendation(self, candidate: Any, job: Any, match_score: int) -> None:
        """Send one recommendation email.

        Raises:
            ExternalServiceError: SMTP not configured, no recipient, or delivery failed
        """
        if not self.is_configured:
            raise ExternalServiceError("SMTP not configured (set SMTP_HOST and SMTP_FROM)")
        if not getattr(candidate, "email", None):
            raise ExternalServiceError(f"Candidate {candidate.id} has no email address")

        message = self.build_message(candidate, job, match_score)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                if self.user:
                    server.login(self.user, self.password)
                server.sendmail(self.from_address, [candidate.email], message.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            raise ExternalServiceError(f"Recommendation email failed: {exc}") from exc

        get_dagster_logger().info(
            f"Recommendation email sent to {candidate.email} for job {job.id} (score={match_score})"
        )
