"""Client-side cache of the corpus tables, reconciled by pull and push.

`RagStore` keeps the documents and regulations tables, the last search
results and a little status in one immutable `RagState`. Fetches replace a
list wholesale; realtime change events are merged into the current list.
Every transition goes through `RagStore.set`, which serializes updates with
a lock because Gradio runs handlers and realtime callbacks on worker
threads.
"""

import threading
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from ..clients.database import DatabaseClient
from ..clients.rag_api import RagApiClient
from ..clients.realtime import RealtimeBroker
from ..models.base import RecordId
from ..models.documents import DocumentRow, RegulationRow, UpdateResponse
from ..models.enums import ChangeEventType, TrackedTable
from ..models.store_state import ChangeEvent, RagState
from ..observability.logging import fields, get_logger
from .session import RealtimeSession

logger = get_logger(__name__)

StatePatch = dict[str, Any]
StateListener = Callable[[RagState], None]

SEARCH_KEY = "search_results"
DEFAULT_SEARCH_LIMIT = 5


def apply_change(
    rows: list[dict[str, Any]], event: ChangeEvent
) -> list[dict[str, Any]]:
    """Merges one change event into a cached list.

    Inserts are prepended, updates replace the row with the same id in
    place, deletes drop it. An update for an id that is not cached is
    ignored; it never inserts. Returns `rows` itself when nothing changes.
    """
    if event.event_type == ChangeEventType.INSERT and event.new:
        return [event.new, *rows]

    if event.event_type == ChangeEventType.UPDATE and event.new and "id" in event.new:
        record_id = event.new["id"]
        if not any(row.get("id") == record_id for row in rows):
            return rows
        return [event.new if row.get("id") == record_id else row for row in rows]

    if event.event_type == ChangeEventType.DELETE and event.old and "id" in event.old:
        record_id = event.old["id"]
        kept = [row for row in rows if row.get("id") != record_id]
        return rows if len(kept) == len(rows) else kept

    return rows


def _noop() -> None:
    pass


class RagStore:
    """Reactive cache of the regulation corpus."""

    def __init__(
        self,
        database: DatabaseClient,
        api: RagApiClient,
        broker: RealtimeBroker,
        *,
        page_size: int = 100,
        session: Optional[RealtimeSession] = None,
    ) -> None:
        """Initializes an empty store.

        Args:
            database: Read access to the corpus tables.
            api: Client of the search and update endpoints.
            broker: Realtime primitive used by `subscribe`.
            page_size: Maximum rows loaded per table fetch.
            session: Optional channel owner; one is created per store if omitted.
        """
        self.database = database
        self.api = api
        self.page_size = page_size
        self.session = session or RealtimeSession(broker)

        self._lock = threading.RLock()
        self._state = RagState()
        self._listeners: list[StateListener] = []
        # Request generation per list; completions carrying an older token are dropped.
        self._tokens: dict[str, int] = {
            TrackedTable.DOCUMENTS.value: 0,
            TrackedTable.REGULATIONS.value: 0,
            SEARCH_KEY: 0,
        }

    # -------------------- state plumbing --------------------

    @property
    def state(self) -> RagState:
        with self._lock:
            return self._state

    def set(self, update: Union[StatePatch, Callable[[RagState], StatePatch]]) -> RagState:
        """Applies a patch (or a function of the current state returning one)."""
        with self._lock:
            patch = update(self._state) if callable(update) else update
            if not patch:
                return self._state
            self._state = self._state.model_copy(update=patch)
            state = self._state
            listeners = list(self._listeners)

            for listener in listeners:
                try:
                    listener(state)
                except Exception:
                    logger.exception("Store listener failed.")
        return state

    def listen(self, listener: StateListener) -> Callable[[], None]:
        """Registers a listener called with every new state.

        Returns:
            A function removing the listener.
        """
        with self._lock:
            self._listeners.append(listener)

        def unlisten() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unlisten

    def _begin(self, key: str, **patch: Any) -> int:
        with self._lock:
            self._tokens[key] += 1
            self.set({"is_loading": True, "error": None, **patch})
            return self._tokens[key]

    def _complete(self, key: str, token: int, patch: StatePatch) -> bool:
        with self._lock:
            if self._tokens[key] != token:
                logger.info(
                    "Discarding stale completion.",
                    extra=fields(target=key, token=token, current=self._tokens[key]),
                )
                return False
            self.set(patch)
            return True

    # -------------------- pull --------------------

    def fetch_documents(self) -> None:
        """Reloads the newest documents; keeps the old list on failure."""
        self._fetch(TrackedTable.DOCUMENTS, DocumentRow.select_columns())

    def fetch_regulations(self) -> None:
        """Reloads the newest regulations; keeps the old list on failure."""
        self._fetch(TrackedTable.REGULATIONS, RegulationRow.select_columns())

    def refresh(self) -> None:
        self.fetch_documents()
        self.fetch_regulations()

    def _fetch(self, table: TrackedTable, columns: str) -> None:
        key = table.value
        token = self._begin(key)
        try:
            rows = self.database.select(
                key,
                columns,
                order_by="created_at",
                descending=True,
                limit=self.page_size,
            )
        except Exception as e:
            logger.warning("Fetch failed.", extra=fields(table=key, error=str(e)))
            self._complete(key, token, {"error": str(e), "is_loading": False})
            return

        logger.info("Fetched rows.", extra=fields(table=key, count=len(rows)))
        self._complete(key, token, {key: rows, "is_loading": False})

    def search_documents(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> None:
        """Runs a semantic search and records its outcome."""
        token = self._begin(SEARCH_KEY, last_query=query)
        try:
            response = self.api.search(query, match_count=limit)
        except Exception as e:
            logger.warning("Search failed.", extra=fields(query=query, error=str(e)))
            self._complete(SEARCH_KEY, token, {"error": str(e), "is_loading": False})
            return

        logger.info(
            "Search completed.", extra=fields(query=query, count=len(response.data))
        )
        self._complete(
            SEARCH_KEY, token, {SEARCH_KEY: list(response.data), "is_loading": False}
        )

    def update_regulation(
        self,
        record_id: RecordId,
        content: str,
        regenerate_embedding: bool = True,
    ) -> Optional[UpdateResponse]:
        """Saves edited content and patches the cached copies of the row.

        Returns:
            The endpoint response, or None if the update failed (the message
            is then in `state.error`).
        """
        self.set({"error": None})
        try:
            response = self.api.update(record_id, content, regenerate_embedding)
        except Exception as e:
            logger.warning(
                "Update failed.", extra=fields(record_id=record_id, error=str(e))
            )
            self.set({"error": str(e)})
            return None

        saved = response.data.content

        def patch(state: RagState) -> StatePatch:
            return {
                SEARCH_KEY: [
                    r.model_copy(update={"content": saved}) if r.id == record_id else r
                    for r in state.search_results
                ],
                "regulations": [
                    {**row, "content": saved} if row.get("id") == record_id else row
                    for row in state.regulations
                ],
            }

        self.set(patch)
        logger.info(
            "Regulation updated.",
            extra=fields(
                record_id=record_id,
                embedding_regenerated=response.embedding_regenerated,
            ),
        )
        return response

    # -------------------- push --------------------

    def subscribe(self) -> Callable[[], None]:
        """Opens the documents and regulations channels.

        Returns:
            A teardown closing the channels; calling it again is a no-op. If
            the store is already subscribed, a no-op teardown is returned
            and no channel is created.
        """
        with self._lock:
            if self._state.is_subscribed or self.session.active:
                return _noop
            handles = self.session.open(
                lambda payload: self._on_change(TrackedTable.DOCUMENTS, payload),
                lambda payload: self._on_change(TrackedTable.REGULATIONS, payload),
            )
            self.set({"is_subscribed": True})

        closed = False

        def teardown() -> None:
            nonlocal closed
            with self._lock:
                if closed:
                    return
                closed = True
                if self.session.close(handles):
                    self.set({"is_subscribed": False})

        return teardown

    def _on_change(self, table: TrackedTable, payload: dict[str, Any]) -> None:
        try:
            event = ChangeEvent.model_validate(payload)
        except ValidationError as e:
            logger.warning(
                "Ignoring malformed change event.",
                extra=fields(table=table.value, error=str(e)),
            )
            return

        key = table.value

        def merge(state: RagState) -> StatePatch:
            rows = getattr(state, key)
            merged = apply_change(rows, event)
            return {} if merged is rows else {key: merged}

        self.set(merge)

    # -------------------- lifecycle --------------------

    def reset(self) -> None:
        """Clears lists and status; an open subscription keeps running."""
        with self._lock:
            for key in self._tokens:
                self._tokens[key] += 1
            self.set(
                {
                    "documents": [],
                    "regulations": [],
                    SEARCH_KEY: [],
                    "is_loading": False,
                    "error": None,
                    "last_query": None,
                }
            )
