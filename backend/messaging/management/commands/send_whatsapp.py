import json
from django.core.management.base import BaseCommand, CommandError
from messaging.exceptions import MessagingError
from messaging.services import get_whatsapp_service

class Command(BaseCommand):
    help = "Queue a templated WhatsApp message, e.g. --var code=123456 --var expiryMinutes=10"

    def add_arguments(self, parser):
        parser.add_argument("phone", help="E.164 recipient, e.g. +15551234567")
        parser.add_argument("template", help="internal template id, e.g. verification_code")
        parser.add_argument("--lang", default=None)
        parser.add_argument("--var", action="append", default=[], metavar="NAME=VALUE")
        parser.add_argument("--tracking-id", default=None)
        parser.add_argument("--dry-run", action="store_true", help="print the resolved payload, do not queue")

    def handle(self, *args, **opts):
        variables = {}
        for item in opts["var"]:
            name, sep, value = item.partition("=")
            if not sep:
                raise CommandError(f"--var expects NAME=VALUE, got {item!r}")
            variables[name] = value

        svc = get_whatsapp_service()
        try:
            if opts["dry_run"]:
                from messaging.i18n import normalize_language
                payload = svc.resolver.resolve(opts["template"], normalize_language(opts["lang"]), variables)
                self.stdout.write(json.dumps(payload.to_dict(), indent=2))
                return
            job_id = svc.send_template(opts["phone"], opts["template"], opts["lang"], variables,
                                       tracking_id=opts["tracking_id"])
        except MessagingError as e:
            raise CommandError(str(e))
        self.stdout.write(self.style.SUCCESS(f"Queued job {job_id}"))
