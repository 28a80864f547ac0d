import logging

from todo_api.core.config import get_settings

logger = logging.getLogger(__name__)

TEMPLATES = {
    "confirm-email": "Hi {username}, please confirm your email address with the token {token}.",
    "reset-password": "Hi {username}, use the token {token} to reset your password.",
    "password-changed": "Hi {username}, your password was changed.",
}


def send_mail_with_template(to: str, subject: str, template: str, data: dict) -> bool:
    """
    Queue a templated notification mail.

    Delivery is not wired to an SMTP server; the rendered message is logged so
    operators can pick it up. Returns False when the mailer is disabled.
    """
    if not get_settings().mailer_enabled:
        return False

    body = TEMPLATES[template].format(**data)
    logger.info("Mail to %s: %s | %s", to, subject, body)
    return True
