import smtplib
import os
from datetime import datetime
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from jinja2 import Environment, FileSystemLoader, select_autoescape
from loguru import logger

from app.core.config import settings
from app.models.enums import ApplicationStatus
from app.schemas.workflow import ApplicationRecord

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates", "email")

_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
)

# new status -> (template, subject)
STATUS_TEMPLATES = {
    ApplicationStatus.APPROVED: ("application_approved.html", "Your application has been approved"),
    ApplicationStatus.REJECTED: ("application_rejected.html", "Action Required: Application Rejected"),
    ApplicationStatus.ESCALATED: ("application_escalated.html", "Your application was forwarded to the Dean"),
}
DEFAULT_TEMPLATE = ("application_status.html", "Application status updated")


# Helper to get template
def get_template(template_name):
    return _env.get_template(template_name)


# Helper to send email via SMTP
def send_email_via_smtp(to_email, subject, html_content):
    # Only HOST is required. User/Pass are optional (for Mailpit)
    if not settings.SMTP_HOST:
        logger.warning("SMTP Host not configured. Skipping email.")
        return

    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{settings.EMAILS_FROM_NAME} <{settings.EMAILS_FROM_EMAIL}>"
        msg["To"] = to_email
        msg.attach(MIMEText(html_content, "html"))

        logger.debug(f"Connecting to SMTP: {settings.SMTP_HOST}:{settings.SMTP_PORT}")

        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT) as server:
            server.ehlo()

            # TLS only on submission ports; Mailpit (1025) runs without it
            if settings.SMTP_PORT in [587, 2525]:
                server.starttls()
                server.ehlo()

            if settings.SMTP_USER and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)

            server.sendmail(settings.EMAILS_FROM_EMAIL, to_email, msg.as_string())

        logger.info(f"Email sent successfully to {to_email}")
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")


def build_status_email_payload(
    application: ApplicationRecord,
    previous_status: ApplicationStatus,
    new_status: ApplicationStatus,
) -> dict:
    return {
        "email": application.submitter_email,
        "application_id": str(application.id),
        "title": application.title,
        "previous_status": previous_status.value,
        "new_status": new_status.value,
        "current_level": application.current_level.value,
        "rejected_by": application.rejected_by.value if application.rejected_by else None,
        "remarks": application.rejection_reason,
        "escalation_reason": application.escalation_reason,
    }


# ---------------------------------------------------------
# STATUS CHANGE EMAIL (one per successful transition)
# ---------------------------------------------------------
def send_status_change_email(data: dict):
    """
    data requires: email, application_id, title, new_status
    """
    try:
        template_name, subject = STATUS_TEMPLATES.get(
            ApplicationStatus(data.get("new_status")), DEFAULT_TEMPLATE
        )
        context = {
            **data,
            "update_date": datetime.now().strftime("%d-%m-%Y %I:%M %p"),
            "track_url": f"{settings.FRONTEND_URL}/applications/{data.get('application_id')}",
        }
        html_content = get_template(template_name).render(context)
        send_email_via_smtp(data.get("email"), subject, html_content)
    except Exception as e:
        logger.error(f"Error preparing status email: {e}")


# ---------------------------------------------------------
# APPLICATION SUBMITTED EMAIL
# ---------------------------------------------------------
def send_application_created_email(data: dict):
    """
    data requires: name, email, application_id, title
    """
    try:
        context = {
            "name": data.get("name"),
            "title": data.get("title"),
            "application_id": str(data.get("application_id")),
            "submission_date": datetime.now().strftime("%d-%m-%Y %I:%M %p"),
            "track_url": f"{settings.FRONTEND_URL}/applications",
        }
        html_content = get_template("application_created.html").render(context)
        send_email_via_smtp(data.get("email"), "Application Submitted Successfully", html_content)
    except Exception as e:
        logger.error(f"Error preparing submission email: {e}")
