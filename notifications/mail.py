"""Outbound e-mail: template name + variables in, MailResult out. Never raises."""

import logging
from dataclasses import dataclass

from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailResult:
    success: bool
    error: str = ""


class DjangoTemplateMailer:
    """
    Renders ``templates/emails/<template>.html`` and delivers it through the
    configured Django EMAIL_BACKEND (SMTP in production, console in dev,
    locmem in tests).
    """

    template_dir = "emails"

    def render(self, template, context):
        return render_to_string(f"{self.template_dir}/{template}.html", context or {})

    def send(self, template, to, subject, context=None) -> MailResult:
        try:
            html_message = self.render(template, context)
            send_mail(
                subject=subject,
                message=strip_tags(html_message),
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[to],
                html_message=html_message,
                fail_silently=False,
            )
        except Exception as e:
            logger.error("Failed to send email template=%s to=%s: %s", template, to, e, exc_info=True)
            return MailResult(success=False, error=str(e))

        logger.info("Email sent template=%s to=%s", template, to)
        return MailResult(success=True)
