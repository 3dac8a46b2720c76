"""
Per-language WhatsApp template definitions.

Each supported language has a ``<template_dir>/<lang>/templates.json`` file that
maps our internal template ids (e.g. "verification_code") to the Meta-approved
template name and the positional order of its parameters:

    {
      "verification_code": {
        "metaTemplateName": "otp_verification",
        "languageCode": "en_US",
        "parameterOrder": ["code"],
        "buttonParameters": [{"index": 0, "type": "url", "parameters": ["code"]}]
      }
    }

Tables are loaded lazily and cached for the life of the process. A language
whose file is missing or broken falls back to the default language's table and
is NOT cached, so the file is picked up as soon as it is fixed.
"""
import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from .exceptions import TemplateLoadError

log = logging.getLogger(__name__)

BUTTON_KINDS = ("quick_reply", "url")
LANGUAGE_RE = re.compile(r"[A-Za-z0-9_-]+")


def _names(value, field_name: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise ValueError(f"{field_name} must be a list, got {type(value).__name__}")
    return tuple(str(p) for p in value)


@dataclass(frozen=True)
class ButtonParameter:
    index: int
    kind: str  # "quick_reply" | "url"
    parameter_order: Tuple[str, ...]


@dataclass(frozen=True)
class TemplateDefinition:
    provider_template_name: str
    language_code: str
    body_parameter_order: Tuple[str, ...] = ()
    header_parameter_order: Tuple[str, ...] = ()
    button_parameters: Tuple[ButtonParameter, ...] = ()

    @classmethod
    def from_json(cls, data: dict) -> "TemplateDefinition":
        if not isinstance(data, dict):
            raise ValueError(f"template definition must be an object, got {type(data).__name__}")
        raw_buttons = data.get("buttonParameters")
        if raw_buttons is not None and not isinstance(raw_buttons, list):
            raise ValueError("buttonParameters must be a list")
        buttons = []
        for raw in raw_buttons or []:
            if not isinstance(raw, dict):
                raise ValueError("button parameter must be an object")
            kind = raw["type"]
            if kind not in BUTTON_KINDS:
                raise ValueError(f"unsupported button type: {kind}")
            buttons.append(ButtonParameter(
                index=int(raw["index"]),
                kind=kind,
                parameter_order=_names(raw.get("parameters"), "parameters"),
            ))
        return cls(
            provider_template_name=str(data["metaTemplateName"]),
            language_code=str(data["languageCode"]),
            body_parameter_order=_names(data.get("parameterOrder"), "parameterOrder"),
            header_parameter_order=_names(data.get("headerParameters"), "headerParameters"),
            button_parameters=tuple(sorted(buttons, key=lambda b: b.index)),
        )


TemplateTable = Mapping[str, TemplateDefinition]


class TemplateStore:
    """Owns the language -> TemplateTable cache. One instance per process."""

    def __init__(self, template_dir, default_language: str = "en"):
        self.template_dir = Path(template_dir)
        self.default_language = default_language
        self._cache: Dict[str, TemplateTable] = {}

    def path_for(self, language: str) -> Path:
        if not LANGUAGE_RE.fullmatch(language or ""):
            raise TemplateLoadError(f"invalid language code: {language!r}")
        return self.template_dir / language / "templates.json"

    def load(self, language: str, _fallback: bool = False) -> TemplateTable:
        cached = self._cache.get(language)
        if cached is not None:
            return cached

        path = None
        try:
            path = self.path_for(language)
            table = self._read(path)
        except TemplateLoadError as e:
            if language != self.default_language and not _fallback:
                log.warning("Falling back to default language %s for %s templates: %s",
                            self.default_language, language, e)
                return self.load(self.default_language, _fallback=True)
            log.error("Error loading WhatsApp templates for language %s (%s): %s", language, path, e)
            raise

        # publish the fully built table in one assignment; racing loaders just overwrite
        self._cache[language] = table
        return table

    @staticmethod
    def _read(path: Path) -> TemplateTable:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError("template file must contain a JSON object")
            table = {str(k): TemplateDefinition.from_json(v) for k, v in raw.items()}
        except (OSError, ValueError, KeyError, TypeError) as e:
            raise TemplateLoadError(f"WhatsApp template mappings not readable at {path}: {e}") from e
        return MappingProxyType(table)
