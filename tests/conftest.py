from datetime import timedelta

import pytest

from worktrack import create_app
from worktrack.models import WorkCard, utcnow
from worktrack.storage import MemStorage


@pytest.fixture()
def app(tmp_path):
    return create_app(testing=True, REPORTS_DIR=str(tmp_path / "reports"))


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def storage():
    return MemStorage()


@pytest.fixture()
def make_card(storage):
    def _make(card_id="WC-100", **extra):
        payload = {
            "card_id": card_id,
            "title": f"Task {card_id}",
            "description": "Install and check",
            "location": "Bay 4",
        }
        payload.update(extra)
        return storage.create(WorkCard, payload)
    return _make


@pytest.fixture()
def past_deadline():
    return utcnow() - timedelta(hours=1)

