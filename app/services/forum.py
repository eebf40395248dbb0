"""
Foro de discusión en tiempo real sobre la colección `mensajes`.

Cada cambio en la colección reconstruye la lista completa de mensajes
ordenada por `timestamp` ascendente; no se hace un merge incremental.
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pymongo import ASCENDING
from pymongo.collection import Collection

from app.models.models import ChatMessage, SessionContext

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[List[ChatMessage]], None]
ErrorCallback = Callable[[Exception], None]


def list_messages(collection: Collection, session: Optional[SessionContext]) -> List[ChatMessage]:
    """Foto completa de los mensajes, marcando los propios del usuario de la sesión."""
    user_id = session.user_id if session else None
    cursor = collection.find({}).sort("timestamp", ASCENDING)
    return [ChatMessage.from_document(doc, user_id) for doc in cursor]


def send_message(collection: Collection, session: SessionContext, text: str) -> Optional[str]:
    """Agrega un mensaje. Un texto vacío o solo con espacios no escribe nada."""
    clean_text = (text or "").strip()
    if not clean_text:
        logger.info("Mensaje vacío ignorado")
        return None

    result = collection.insert_one(
        {
            "userName": session.display_name or session.email or "Anónimo",
            "text": clean_text,
            "timestamp": datetime.now(timezone.utc),
            "userId": session.user_id,
        }
    )
    return str(result.inserted_id)


class ForumSubscription:
    """
    Suscripción viva a la colección de mensajes.

    `start()` entrega una foto inicial y abre un change stream en un hilo
    propio. Un error detiene la suscripción (no hay reconexión) y se
    informa por `on_error`. `close()` libera el listener y puede llamarse
    más de una vez.
    """

    def __init__(
        self,
        collection: Collection,
        session: Optional[SessionContext],
        on_snapshot: SnapshotCallback,
        on_error: Optional[ErrorCallback] = None,
        max_await_time_ms: int = 1000,
    ):
        self.collection = collection
        self.session = session
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self.max_await_time_ms = max_await_time_ms
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._stream = None

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("La suscripción ya fue iniciada")
        self._thread = threading.Thread(target=self._listen, name="forum-subscription", daemon=True)
        self._thread.start()

    def close(self, timeout: float = 5.0) -> None:
        self._stop.set()
        stream = self._stream
        if stream is not None:
            try:
                stream.close()
            except Exception as e:
                logger.warning(f"Error cerrando el change stream del foro: {e}")
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _emit_snapshot(self) -> None:
        self.on_snapshot(list_messages(self.collection, self.session))

    def _listen(self) -> None:
        try:
            with self.collection.watch(max_await_time_ms=self.max_await_time_ms) as stream:
                self._stream = stream
                self._emit_snapshot()
                while not self._stop.is_set() and stream.alive:
                    change = stream.try_next()
                    if change is None or self._stop.is_set():
                        continue
                    logger.debug(f"Cambio en el foro: {change.get('operationType')}")
                    self._emit_snapshot()
        except Exception as e:
            if self._stop.is_set():
                return
            logger.error(f"Error en la suscripción del foro: {e}")
            if self.on_error is not None:
                self.on_error(e)
        finally:
            self._stream = None
