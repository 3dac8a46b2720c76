import pytest

from messaging.exceptions import TemplateLoadError, TemplateNotFoundError
from messaging.resolver import TemplateResolver
from messaging.template_store import TemplateStore

from .conftest import write_templates


def _texts(component):
    return [p["text"] for p in component["parameters"]]


def test_resolve_builds_components_in_fixed_order(resolver):
    payload = resolver.resolve("order_shipped", "en", {
        "name": "Ada", "orderNumber": 1042, "eta": "Friday",
        "trackingPath": "t/abc", "stopPayload": "STOP",
    }).to_dict()

    assert payload["name"] == "order_shipped_v2"
    assert payload["language"] == {"policy": "deterministic", "code": "en_US"}
    types = [(c["type"], c.get("index")) for c in payload["components"]]
    assert types == [("header", None), ("body", None), ("button", 0), ("button", 1)]
    header, body, url_button, reply_button = payload["components"]
    assert _texts(header) == ["1042"]
    assert _texts(body) == ["Ada", "1042", "Friday"]
    assert url_button["sub_type"] == "url" and _texts(url_button) == ["t/abc"]
    assert reply_button["sub_type"] == "quick_reply" and _texts(reply_button) == ["STOP"]
    assert all(p["type"] == "text" for c in payload["components"] for p in c["parameters"])


def test_order_comes_from_definition_not_caller(resolver):
    a = resolver.resolve("order_shipped", "en", {"eta": "Mon", "orderNumber": "7", "name": "Bo"})
    b = resolver.resolve("order_shipped", "en", {"name": "Bo", "orderNumber": "7", "eta": "Mon"})
    assert a == b


def test_different_values_change_only_text(resolver):
    a = resolver.resolve("order_shipped", "en", {"name": "A", "orderNumber": 1, "eta": "x"}).to_dict()
    b = resolver.resolve("order_shipped", "en", {"name": "B", "orderNumber": 2}).to_dict()
    assert a["name"] == b["name"] and a["language"] == b["language"]
    assert [(c["type"], len(c["parameters"])) for c in a["components"]] == \
        [(c["type"], len(c["parameters"])) for c in b["components"]]
    assert _texts(a["components"][1]) != _texts(b["components"][1])


def test_missing_variable_binds_empty_string(resolver):
    payload = resolver.resolve("order_shipped", "en", {"name": "Ada"}).to_dict()
    body = payload["components"][1]
    assert _texts(body) == ["Ada", "", ""]


def test_unknown_variables_are_ignored(resolver):
    payload = resolver.resolve("verification_code", "en", {"code": "123456", "legacy": "x"}).to_dict()
    assert [_texts(c) for c in payload["components"]] == [["123456"], ["123456"]]


def test_numbers_become_decimal_strings(resolver):
    payload = resolver.resolve("order_shipped", "en", {"name": 5, "orderNumber": 10.0, "eta": 2.5}).to_dict()
    assert _texts(payload["components"][1]) == ["5", "10", "2.5"]


def test_booleans_bind_as_decimal_like_ints(resolver):
    payload = resolver.resolve("order_shipped", "en", {"name": True, "orderNumber": False, "eta": 1}).to_dict()
    assert _texts(payload["components"][1]) == ["1", "0", "1"]


def test_no_header_parameters_means_no_header_component(resolver):
    payload = resolver.resolve("verification_code", "en", {"code": "1"}).to_dict()
    assert [c["type"] for c in payload["components"]] == ["body", "button"]


def test_template_without_parameters_has_no_components_key(resolver):
    payload = resolver.resolve("welcome", "en", {"name": "ignored"}).to_dict()
    assert "components" not in payload
    assert payload == {"name": "welcome_v1", "language": {"policy": "deterministic", "code": "en_US"}}


def test_button_with_no_parameters_is_omitted(template_dir):
    write_templates(template_dir, "en", {
        "promo": {
            "metaTemplateName": "promo_v1", "languageCode": "en",
            "parameterOrder": ["name"],
            "buttonParameters": [{"index": 0, "type": "quick_reply", "parameters": []}],
        },
    })
    resolver = TemplateResolver(TemplateStore(template_dir))
    payload = resolver.resolve("promo", "en", {"name": "x"}).to_dict()
    assert [c["type"] for c in payload["components"]] == ["body"]


def test_requested_language_used_when_present(resolver):
    payload = resolver.resolve("verification_code", "fr", {"code": "42"}).to_dict()
    assert payload["language"]["code"] == "fr"


def test_template_missing_in_language_falls_back_to_default(resolver):
    payload = resolver.resolve("order_shipped", "fr", {"name": "Zoé"}).to_dict()
    assert payload["language"]["code"] == "en_US"


def test_language_without_source_falls_back_to_default(resolver):
    payload = resolver.resolve("verification_code", "pt", {"code": "9"}).to_dict()
    assert payload["language"]["code"] == "en_US"


@pytest.mark.parametrize("language", ["en", "fr", "pt"])
def test_unknown_template_raises_not_found(resolver, language):
    with pytest.raises(TemplateNotFoundError) as exc:
        resolver.resolve("does_not_exist", language, {})
    assert exc.value.template_id == "does_not_exist"
    assert exc.value.language == "en"


def test_default_table_unreadable_raises_load_error(tmp_path):
    resolver = TemplateResolver(TemplateStore(tmp_path))
    with pytest.raises(TemplateLoadError):
        resolver.resolve("verification_code", "en", {})
