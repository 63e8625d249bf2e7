from __future__ import annotations

import smtplib

from .logging_setup import get_logger


logger = get_logger("taxpal.mailer")


class MailerVerifier:
    """Checks that the outbound SMTP relay answers. Never raises."""

    def __init__(self, host: str | None, port: int = 587, timeout: float = 5.0) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout

    def verify(self) -> bool:
        if not self.host:
            logger.warning("[mailer] verify skipped: SMTP_HOST not set")
            return False
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.noop()
        except (OSError, smtplib.SMTPException, UnicodeError) as exc:
            logger.warning("[mailer] verify failed: %s", exc)
            return False
        logger.info("[mailer] SMTP relay %s:%d is reachable", self.host, self.port)
        return True
