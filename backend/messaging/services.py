"""
Entry points the rest of the codebase calls to send a notification.

Everything here returns as soon as the job is on the broker; the job id that
comes back is the handle for MessageLog rows and provider status webhooks.
"""
import logging
from typing import Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode

from django.apps import apps
from django.conf import settings
from django.template import TemplateDoesNotExist
from django.template.loader import render_to_string
from django.utils.html import strip_tags

from .dispatch import DispatchQueue, mask_recipient
from .exceptions import TemplateNotFoundError
from .i18n import default_language, normalize_language
from .resolver import TemplateResolver

log = logging.getLogger(__name__)


class WhatsAppService:
    def __init__(self, resolver: TemplateResolver, queue: DispatchQueue):
        self.resolver = resolver
        self.queue = queue

    def send_template(self, phone_e164: str, template_id: str, language: Optional[str],
                      variables: Mapping[str, Union[str, int, float]],
                      tracking_id: Optional[str] = None) -> str:
        template = self.resolver.resolve(template_id, normalize_language(language), variables)
        return self.queue.enqueue(phone_e164, template, tracking_id=tracking_id)

    def send_verification_code(self, phone_e164: str, language: Optional[str], code: str,
                               expiry_minutes: Union[str, int], tracking_id: Optional[str] = None) -> str:
        job_id = self.send_template(phone_e164, "verification_code", language, {
            "code": code,
            "expiryMinutes": str(expiry_minutes),
        }, tracking_id=tracking_id)
        log.info("Verification code WhatsApp queued for %s (job %s)", mask_recipient(phone_e164), job_id)
        return job_id


class EmailService:
    def __init__(self, queue: DispatchQueue):
        self.queue = queue

    def send_html(self, to: str, subject: str, html: str, text: Optional[str] = None) -> str:
        """Generic HTML email; plain-text part derived from the HTML when omitted."""
        payload = {"subject": subject, "html": html, "text": text or _html_to_text(html)}
        return self.queue.enqueue(to, payload)

    def send_template(self, to: str, template_name: str, language: Optional[str], context: dict) -> str:
        """
        Render ``messaging/email/<lang>/<template_name>.html`` (and its
        ``_subject.txt``) and queue it. Languages without their own copy of the
        template use the default language's.
        """
        subject, html = render_email(template_name, normalize_language(language), context)
        job_id = self.send_html(to, subject, html)
        log.info("%s email queued for %s (job %s)", template_name, mask_recipient(to), job_id)
        return job_id

    def send_verification_code(self, to: str, language: Optional[str], code: str,
                               expiry_minutes: Union[str, int]) -> str:
        return self.send_template(to, "verification_code", language, {
            "code": code,
            "expiry_minutes": expiry_minutes,
        })

    def send_password_reset(self, to: str, language: Optional[str], token: str,
                            expiry_minutes: Union[str, int]) -> str:
        reset_url = f"{settings.FRONTEND_URL}/reset-password?{urlencode({'token': token})}"
        return self.send_template(to, "password_reset", language, {
            "reset_url": reset_url,
            "expiry_minutes": expiry_minutes,
        })

    def send_welcome(self, to: str, language: Optional[str], name: str = "") -> str:
        return self.send_template(to, "welcome", language, {"name": name, "frontend_url": settings.FRONTEND_URL})


def render_email(template_name: str, language: str, context: dict) -> Tuple[str, str]:
    def names(suffix):
        return [f"messaging/email/{lang}/{template_name}{suffix}" for lang in (language, default_language())]

    try:
        subject = render_to_string(names("_subject.txt"), context)
        # subject must be a single line
        subject = "".join(subject.splitlines()).strip()
        html = render_to_string(names(".html"), {**context, "subject": subject})
    except TemplateDoesNotExist as e:
        raise TemplateNotFoundError(template_name, language) from e
    return subject, html


class PushService:
    def __init__(self, queue: DispatchQueue):
        self.queue = queue

    def send(self, tokens: Iterable[str], title: str, body: str,
             data: Optional[Mapping[str, object]] = None) -> List[str]:
        """One job per device token; returns the job ids in token order."""
        tokens = [t for t in tokens if t]
        if not tokens:
            log.debug("No device tokens for push %r, nothing queued", title)
            return []
        # FCM data payloads are string -> string
        payload = {"title": title, "body": body, "data": {str(k): str(v) for k, v in (data or {}).items()}}
        job_ids = [self.queue.enqueue(token, payload) for token in tokens]
        log.info("Push notification %r queued for %s devices", title, len(job_ids))
        return job_ids


def _html_to_text(html: str) -> str:
    lines = (line.strip() for line in strip_tags(html or "").splitlines())
    return "\n".join(line for line in lines if line)


def get_whatsapp_service() -> WhatsAppService:
    cfg = apps.get_app_config("messaging")
    return WhatsAppService(cfg.resolver, cfg.whatsapp_queue)


def get_email_service() -> EmailService:
    return EmailService(apps.get_app_config("messaging").email_queue)


def get_push_service() -> PushService:
    return PushService(apps.get_app_config("messaging").push_queue)
