"""
Shared fixtures for messaging tests: throwaway template directories and a
queue whose Celery task never touches a broker.
"""
import json
from unittest.mock import MagicMock

import pytest

from messaging.dispatch import DispatchQueue, RetryPolicy
from messaging.resolver import TemplateResolver
from messaging.template_store import TemplateStore

EN_TEMPLATES = {
    "verification_code": {
        "metaTemplateName": "otp_verification",
        "languageCode": "en_US",
        "parameterOrder": ["code"],
        "buttonParameters": [{"index": 0, "type": "url", "parameters": ["code"]}],
    },
    "order_shipped": {
        "metaTemplateName": "order_shipped_v2",
        "languageCode": "en_US",
        "headerParameters": ["orderNumber"],
        "parameterOrder": ["name", "orderNumber", "eta"],
        "buttonParameters": [
            {"index": 1, "type": "quick_reply", "parameters": ["stopPayload"]},
            {"index": 0, "type": "url", "parameters": ["trackingPath"]},
        ],
    },
    "welcome": {
        "metaTemplateName": "welcome_v1",
        "languageCode": "en_US",
        "parameterOrder": [],
    },
}

FR_TEMPLATES = {
    "verification_code": {
        "metaTemplateName": "otp_verification",
        "languageCode": "fr",
        "parameterOrder": ["code"],
    },
}


def write_templates(root, language, data):
    d = root / language
    d.mkdir(parents=True, exist_ok=True)
    path = d / "templates.json"
    path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def template_dir(tmp_path):
    write_templates(tmp_path, "en", EN_TEMPLATES)
    write_templates(tmp_path, "fr", FR_TEMPLATES)
    return tmp_path


@pytest.fixture
def store(template_dir):
    return TemplateStore(template_dir, default_language="en")


@pytest.fixture
def resolver(store):
    return TemplateResolver(store)


@pytest.fixture
def fake_task():
    task = MagicMock(name="deliver_task")
    task.apply_async.return_value = MagicMock()
    return task


@pytest.fixture
def queue(fake_task):
    return DispatchQueue(fake_task, "whatsapp", RetryPolicy(max_attempts=3, backoff_delay=5))
