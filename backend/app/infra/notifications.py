# app/infra/notifications.py
"""
Transport SMTP des emails de rendez-vous.

Fonctions synchrones (smtplib) : les services les appellent via
run_in_threadpool pour ne pas bloquer la boucle async.
"""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.core.exceptions import NotificationDeliveryError
from app.engine.notifications.renderer import (
    RenderedEmail,
    dedupe_recipients,
    render_rendezvous_email,
)
from app.shared.enums import NotificationMode

logger = logging.getLogger(__name__)


def send_email(recipients: List[str], email: RenderedEmail) -> None:
    sender = settings.EMAIL_FROM or settings.SMTP_USER

    message = MIMEMultipart("alternative")
    message["Subject"] = email.subject
    message["From"] = f"SalesTracker <{sender}>"
    message["To"] = ", ".join(recipients)
    message.attach(MIMEText(email.html, "html", "utf-8"))

    try:
        if settings.SMTP_PORT == 465:
            server = smtplib.SMTP_SSL(settings.SMTP_SERVER, settings.SMTP_PORT)
        else:
            server = smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT)
        with server:
            if settings.SMTP_PORT != 465:
                server.starttls()
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.sendmail(sender, recipients, message.as_string())
    except (smtplib.SMTPException, OSError) as e:
        raise NotificationDeliveryError(f"Erreur SMTP: {e}") from e


def send_rendezvous_notification(
    form: Dict[str, Any],
    visite: Optional[Dict[str, Any]],
    created_by: Optional[Dict[str, Any]],
    mode: NotificationMode,
    now=None,
) -> bool:
    """
    Rend puis envoie l'email de RDV.

    Returns:
        True si envoyé, False si SMTP non configuré (envoi ignoré, warning).
    Raises:
        NotificationDeliveryError si le transport échoue.
    """
    if not settings.smtp_configured:
        logger.warning("Configuration SMTP incomplète. Email non envoyé.")
        return False

    recipients = dedupe_recipients(
        [*settings.NOTIFICATION_RECIPIENTS, (created_by or {}).get("email")]
    )
    if not recipients:
        logger.warning("Aucun destinataire configuré. Email non envoyé.")
        return False

    email = render_rendezvous_email(form, visite, created_by, mode=mode, now=now)
    send_email(recipients, email)
    logger.info("Email de rendez-vous envoyé", extra={"recipients": len(recipients)})
    return True
