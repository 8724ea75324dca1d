import logging
from typing import Any, Dict

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)


def send_stillbirth_alert(to: str, context: Dict[str, Any]) -> int:
    """Send the stillbirth alert e-mail to one recipient.

    Returns the number of messages the backend accepted.  Delivery errors
    are logged and re-raised so the caller decides whether to continue.
    """
    logger.info("sending stillbirth alert to %s", to)
    body = render_to_string('registry/stillbirth_alert.txt', context)
    try:
        sent = send_mail(
            subject=settings.STILLBIRTH_ALERT_SUBJECT,
            message=body,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[to],
            fail_silently=False,
        )
    except Exception:
        logger.exception("stillbirth alert to %s failed", to)
        raise
    logger.info("stillbirth alert queued for %s", to)
    return sent
