import queue
from types import SimpleNamespace

import httpx
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import PyMongoError

from app.api.deps import get_narrative_generator, get_report_cache, get_stats_client
from app.api.v1.endpoints.auth import create_access_token
from app.core.database import (
    get_feed_collection,
    get_messages_collection,
    get_revoked_tokens_collection,
    get_users_collection,
)
from app.main import app
from app.services.narrative import NarrativeGenerator
from app.services.report_cache import ReportCache
from app.services.stats_client import StatsApiClient
from app.services.surveys_repository import SurveyRepository


class FakeCursor:
    def __init__(self, docs):
        self.docs = list(docs)

    def sort(self, key, direction=1):
        self.docs.sort(key=lambda d: (d.get(key) is None, d.get(key)), reverse=direction < 0)
        return self

    def __iter__(self):
        return iter(self.docs)


class FakeChangeStream:
    def __init__(self, changes):
        self.changes = changes
        self.alive = True
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def try_next(self):
        try:
            item = self.changes.get(timeout=0.01)
        except queue.Empty:
            return None
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True
        self.alive = False


class FakeCollection:
    """Colección en memoria con el subconjunto de pymongo que usa la app."""

    def __init__(self, docs=None):
        self.docs = [dict(d) for d in (docs or [])]
        for doc in self.docs:
            doc.setdefault("_id", ObjectId())
        self.fail_reads = False
        self.fail_writes = False
        self.writes = []
        self.changes = queue.Queue()
        self.streams = []

    @staticmethod
    def _matches(doc, query):
        for key, expected in (query or {}).items():
            if isinstance(expected, dict) and "$in" in expected:
                if doc.get(key) not in expected["$in"]:
                    return False
            elif doc.get(key) != expected:
                return False
        return True

    def find(self, query=None):
        if self.fail_reads:
            raise PyMongoError("lectura fallida")
        return FakeCursor(dict(d) for d in self.docs if self._matches(d, query))

    def find_one(self, query=None):
        for doc in self.find(query):
            return doc
        return None

    def insert_one(self, doc):
        if self.fail_writes:
            raise PyMongoError("escritura fallida")
        doc = dict(doc)
        doc.setdefault("_id", ObjectId())
        self.docs.append(doc)
        self.writes.append(("insert", doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def update_one(self, query, update, upsert=False):
        if self.fail_writes:
            raise PyMongoError("escritura fallida")
        self.writes.append(("update", query, update))
        for doc in self.docs:
            if self._matches(doc, query):
                doc.update(update.get("$set", {}))
                return SimpleNamespace(matched_count=1)
        if upsert:
            new_doc = {k: v for k, v in query.items() if not isinstance(v, dict)}
            new_doc.update(update.get("$set", {}))
            self.docs.append(new_doc)
        return SimpleNamespace(matched_count=0)

    def watch(self, **kwargs):
        stream = FakeChangeStream(self.changes)
        self.streams.append(stream)
        return stream

    def push_change(self, change):
        self.changes.put(change)


def survey_doc(**overrides):
    doc = {
        "_id": ObjectId(),
        "title": "Satisfacción con el servicio de salud",
        "category": "Salud",
        "question": "¿Cómo califica el servicio?",
        "chartType": "bar",
        "description": "Calificaciones del servicio de salud",
        "chartData": {"labels": ["Malo", "Regular", "Bueno"], "values": [10, 20, 30]},
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def make_survey_doc():
    return survey_doc


@pytest.fixture
def feed_collection():
    return FakeCollection(
        [
            survey_doc(title="Servicio de salud", category="Salud"),
            survey_doc(title="Seguridad nocturna", category="Seguridad", chartType="pie",
                       chartData={"labels": ["Seguro", "Inseguro"], "values": [40.0, 60.0]}),
            survey_doc(title="Transporte", category="Movilidad urbana", chartType="stackedBar",
                       chartData={"labels": ["GDL", "ZAP"],
                                  "datasets": [{"name": "Bueno", "data": [1, 2]}, {"name": "Malo", "data": [3, 4]}]}),
        ]
    )


@pytest.fixture
def messages_collection():
    return FakeCollection()


@pytest.fixture
def users_collection():
    return FakeCollection()


@pytest.fixture
def revoked_collection():
    return FakeCollection()


@pytest.fixture
def narrative_generator():
    return NarrativeGenerator(ai_mode_enabled=False)


@pytest.fixture
def stats_client():
    return StatsApiClient(
        base_url="http://stats.test/api",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(404))),
    )


@pytest.fixture
def client(feed_collection, messages_collection, users_collection, revoked_collection,
           narrative_generator, stats_client):
    cache = ReportCache(SurveyRepository(feed_collection))
    app.dependency_overrides.update(
        {
            get_feed_collection: lambda: feed_collection,
            get_messages_collection: lambda: messages_collection,
            get_users_collection: lambda: users_collection,
            get_revoked_tokens_collection: lambda: revoked_collection,
            get_report_cache: lambda: cache,
            get_narrative_generator: lambda: narrative_generator,
            get_stats_client: lambda: stats_client,
        }
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def auth_headers(user_id="u-ana", email="ana@correo.mx", name="Ana", guest=False):
    claims = {"sub": user_id, "email": email, "name": name}
    if guest:
        claims["guest"] = True
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


@pytest.fixture
def user_headers():
    return auth_headers()


@pytest.fixture
def guest_headers():
    return auth_headers(user_id="invitado-1", email="", name="", guest=True)


class FakeCompletions:
    """Imita `client.chat.completions` de openai."""

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.requests = []

    async def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))
