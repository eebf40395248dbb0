import threading
from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId
from pymongo.errors import PyMongoError

from app.models.models import SessionContext
from app.services.forum import ForumSubscription, list_messages, send_message
from conftest import FakeCollection

ANA = SessionContext(user_id="u-ana", email="ana@example.com", display_name="Ana")
LUIS = SessionContext(user_id="u-luis", email="luis@example.com", display_name="Luis")


def message_doc(user_id, text, minutes):
    return {
        "_id": ObjectId(),
        "userId": user_id,
        "userName": user_id,
        "text": text,
        "timestamp": datetime(2025, 3, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes),
    }


class SnapshotRecorder:
    def __init__(self):
        self.snapshots = []
        self.errors = []
        self.event = threading.Event()

    def on_snapshot(self, snapshot):
        self.snapshots.append(snapshot)
        self.event.set()

    def on_error(self, error):
        self.errors.append(error)
        self.event.set()

    def wait(self, timeout=2.0):
        assert self.event.wait(timeout), "no llegó ningún evento"
        self.event.clear()


def test_send_message_writes_one_document(messages_collection):
    message_id = send_message(messages_collection, ANA, "  Hola a todos  ")

    assert message_id is not None
    assert len(messages_collection.docs) == 1
    doc = messages_collection.docs[0]
    assert doc["text"] == "Hola a todos"
    assert doc["userId"] == "u-ana"
    assert doc["userName"] == "Ana"
    assert doc["timestamp"].tzinfo is not None


@pytest.mark.parametrize("text", ["", "   ", "\n\t"])
def test_blank_message_is_not_written(messages_collection, text):
    assert send_message(messages_collection, ANA, text) is None
    assert messages_collection.writes == []


def test_user_name_falls_back_to_email(messages_collection):
    session = SessionContext(user_id="u-x", email="x@example.com")

    send_message(messages_collection, session, "hola")

    assert messages_collection.docs[0]["userName"] == "x@example.com"


def test_list_messages_sorted_and_flags_own():
    collection = FakeCollection(
        [
            message_doc("u-luis", "segundo", 2),
            message_doc("u-ana", "primero", 1),
            message_doc("u-ana", "tercero", 3),
        ]
    )

    messages = list_messages(collection, ANA)

    assert [m.text for m in messages] == ["primero", "segundo", "tercero"]
    assert [m.is_own for m in messages] == [True, False, True]
    assert [m.is_own for m in list_messages(collection, None)] == [False, False, False]


def test_subscription_emits_initial_and_full_snapshots(messages_collection):
    messages_collection.docs.append(message_doc("u-luis", "hola", 1))
    recorder = SnapshotRecorder()
    subscription = ForumSubscription(messages_collection, ANA, recorder.on_snapshot, recorder.on_error)

    subscription.start()
    recorder.wait()
    assert [m.text for m in recorder.snapshots[0]] == ["hola"]

    send_message(messages_collection, ANA, "respuesta")
    messages_collection.push_change({"operationType": "insert"})
    recorder.wait()
    latest = recorder.snapshots[-1]
    assert [m.text for m in latest] == ["hola", "respuesta"]
    assert [m.is_own for m in latest] == [False, True]

    subscription.close()
    assert not subscription.active
    assert messages_collection.streams[0].closed


def test_close_is_idempotent(messages_collection):
    recorder = SnapshotRecorder()
    subscription = ForumSubscription(messages_collection, ANA, recorder.on_snapshot)

    subscription.start()
    recorder.wait()
    subscription.close()
    subscription.close()

    assert not subscription.active


def test_close_before_start_is_harmless(messages_collection):
    ForumSubscription(messages_collection, ANA, lambda snapshot: None).close()


def test_stream_error_stops_subscription_and_reports(messages_collection):
    recorder = SnapshotRecorder()
    subscription = ForumSubscription(messages_collection, LUIS, recorder.on_snapshot, recorder.on_error)

    subscription.start()
    recorder.wait()
    messages_collection.push_change(PyMongoError("change stream roto"))
    recorder.wait()

    assert len(recorder.errors) == 1
    subscription.close()
    assert not subscription.active
    assert len(recorder.snapshots) == 1


def test_start_twice_is_rejected(messages_collection):
    subscription = ForumSubscription(messages_collection, ANA, lambda snapshot: None)
    subscription.start()
    try:
        with pytest.raises(RuntimeError):
            subscription.start()
    finally:
        subscription.close()
