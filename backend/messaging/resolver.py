import logging
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple, Union

from .exceptions import TemplateNotFoundError
from .template_store import TemplateDefinition, TemplateStore

log = logging.getLogger(__name__)

Variable = Union[str, int, float]


@dataclass(frozen=True)
class TemplateParameter:
    text: str
    type: str = "text"

    def to_dict(self) -> dict:
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class TemplateComponent:
    type: str  # header | body | button
    parameters: Tuple[TemplateParameter, ...]
    sub_type: Optional[str] = None  # buttons only: quick_reply | url
    index: Optional[int] = None

    def to_dict(self) -> dict:
        out = {"type": self.type}
        if self.sub_type is not None:
            out["sub_type"] = self.sub_type
            out["index"] = self.index
        out["parameters"] = [p.to_dict() for p in self.parameters]
        return out


@dataclass(frozen=True)
class BuiltPayload:
    """The ``template`` object of a Cloud API template message."""
    name: str
    language_code: str
    components: Tuple[TemplateComponent, ...] = ()

    def to_dict(self) -> dict:
        out = {
            "name": self.name,
            "language": {"policy": "deterministic", "code": self.language_code},
        }
        # Meta rejects an empty components array; leave the key out instead
        if self.components:
            out["components"] = [c.to_dict() for c in self.components]
        return out


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        # bool is an int; bind it the way ints bind
        return str(int(value))
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _bind(order, variables: Mapping[str, Variable]) -> Tuple[TemplateParameter, ...]:
    return tuple(TemplateParameter(text=_text(variables.get(name))) for name in order)


def build_payload(definition: TemplateDefinition, variables: Mapping[str, Variable]) -> BuiltPayload:
    """Bind variables positionally: header, body, then buttons by index."""
    components = []
    if definition.header_parameter_order:
        components.append(TemplateComponent("header", _bind(definition.header_parameter_order, variables)))
    if definition.body_parameter_order:
        components.append(TemplateComponent("body", _bind(definition.body_parameter_order, variables)))
    for button in definition.button_parameters:
        if not button.parameter_order:
            continue
        components.append(TemplateComponent(
            "button",
            _bind(button.parameter_order, variables),
            sub_type=button.kind,
            index=button.index,
        ))
    return BuiltPayload(
        name=definition.provider_template_name,
        language_code=definition.language_code,
        components=tuple(components),
    )


class TemplateResolver:
    def __init__(self, store: TemplateStore):
        self.store = store

    @property
    def default_language(self) -> str:
        return self.store.default_language

    def resolve(self, template_id: str, language: str,
                variables: Optional[Mapping[str, Variable]] = None,
                _fallback: bool = False) -> BuiltPayload:
        table = self.store.load(language)
        definition = table.get(template_id)
        if definition is None:
            if language != self.default_language and not _fallback:
                log.info("Template %s missing for %s, using %s", template_id, language, self.default_language)
                return self.resolve(template_id, self.default_language, variables, _fallback=True)
            raise TemplateNotFoundError(template_id, language)
        return build_payload(definition, variables or {})
