from django.core.management.base import BaseCommand, CommandError
from messaging.exceptions import MessagingError
from messaging.services import get_email_service

class Command(BaseCommand):
    help = "Queue a transactional HTML email."

    def add_arguments(self, parser):
        parser.add_argument("to")
        parser.add_argument("subject")
        parser.add_argument("--html", required=True, help="HTML body")
        parser.add_argument("--text", default=None, help="plain-text body (derived from --html if omitted)")

    def handle(self, *args, **opts):
        try:
            job_id = get_email_service().send_html(opts["to"], opts["subject"], opts["html"], opts["text"])
        except MessagingError as e:
            raise CommandError(str(e))
        self.stdout.write(self.style.SUCCESS(f"Queued job {job_id}"))
