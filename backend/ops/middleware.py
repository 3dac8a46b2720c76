import json, time, logging, os
from django.utils.deprecation import MiddlewareMixin
from django.utils.timezone import now

log = logging.getLogger("request")
REDACT = os.getenv("REDACT_PII_IN_LOGS","1") == "1"
LOG_REQUESTS = os.getenv("LOG_REQUESTS","1") == "1"

# exact keys, plus anything that looks like a credential
REDACT_KEYS = {"password","phone","phone_e164","to","email","recipient","authorization"}
SECRET_MARKERS = ("token","secret","signature")
# provider callbacks carry recipient data and verify tokens; log the line, never their query/body
QUIET_PREFIXES = ("/webhooks/",)


def _redacted(key: str) -> bool:
    k = key.lower()
    return k in REDACT_KEYS or any(m in k for m in SECRET_MARKERS)


def _scrub(d):
    if not REDACT:
        return dict(d)
    return {k: ("***redacted***" if _redacted(k) else v) for k, v in d.items()}


def _client_ip(request):
    fwd = request.META.get("HTTP_X_FORWARDED_FOR", "")
    return fwd.split(",")[0].strip() if fwd else request.META.get("REMOTE_ADDR")


class RequestLogMiddleware(MiddlewareMixin):
    """One JSON line per request on the "request" logger; 5xx at error level."""

    def process_request(self, request):
        if LOG_REQUESTS:
            request._started = time.monotonic()

    def process_response(self, request, response):
        if not LOG_REQUESTS:
            return response
        try:
            started = getattr(request, "_started", None)
            line = {
                "ts": now().isoformat(),
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "duration_ms": int((time.monotonic() - started) * 1000) if started else None,
                "ip": _client_ip(request),
                "ua": request.META.get("HTTP_USER_AGENT",""),
            }
            u = getattr(request, "user", None)
            if u is not None and u.is_authenticated:
                line["user"] = u.get_username()
            if not request.path.startswith(QUIET_PREFIXES):
                if request.GET:
                    line["query"] = _scrub(request.GET.dict())
                if request.method in ("POST","PUT","PATCH"):
                    line["body_keys"] = sorted(request.POST.keys())
            level = logging.ERROR if response.status_code >= 500 else logging.INFO
            log.log(level, json.dumps(line))
        except Exception:
            # a broken log line must never turn into a 500
            log.debug("request log failed", exc_info=True)
        return response
