from typing import Optional

from django.conf import settings


def supported_languages():
    return tuple(getattr(settings, "MESSAGING_SUPPORTED_LANGUAGES", ("en",)))


def default_language() -> str:
    return getattr(settings, "MESSAGING_DEFAULT_LANGUAGE", "en")


def normalize_language(value: Optional[str]) -> str:
    """Normalize arbitrary inputs like 'EN', 'en_US', 'fr-CA' -> template language dir.

    Unknown languages are passed through (lower-cased base tag) so the template
    store can still try them and fall back on its own.
    """
    v = (value or "").strip().lower().replace("_", "-")
    if not v:
        return default_language()
    base = v.split("-", 1)[0]
    if v in supported_languages():
        return v
    return base or default_language()


def choose_language(*candidates: Optional[str]) -> str:
    """First candidate we actually have templates for, e.g. (user pref, Accept-Language)."""
    for cand in candidates:
        if not cand:
            continue
        c = normalize_language(cand)
        if c in supported_languages():
            return c
    return default_language()
