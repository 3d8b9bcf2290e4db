# storefront/utils/store.py
"""Durable client store shared by every tab of the storefront.

Each logical key (cart, pending order, customer profile, ...) holds a JSON
document in the ``store_entries`` table. Tabs never lock each other out:
the last write wins, and a tab learns about another tab's writes the next
time it calls :meth:`PersistentStore.sync`.
"""
import logging
import uuid
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from pydantic import TypeAdapter, ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from storefront.config import settings
from storefront.errors import StorageReadError, StorageWriteError
from storefront.models.store_entry import StoreEntry
from storefront.schemas.cart import CartLine
from storefront.schemas.customer import Customer
from storefront.schemas.order import PendingOrder
from storefront.utils.audit import write_log

logger = logging.getLogger(__name__)

T = TypeVar("T")
ChangeHandler = Callable[[str], None]


class StoreKey(Generic[T]):
    """A logical key with the type its JSON value decodes to."""

    def __init__(self, name: str, type_: Any, default: Callable[[], T]):
        self.name = name
        self.adapter = TypeAdapter(type_)
        self._default = default

    def default(self) -> T:
        return self._default()

    def encode(self, value: T) -> str:
        return self.adapter.dump_json(value, by_alias=True).decode("utf-8")

    def decode(self, raw: str) -> T:
        try:
            return self.adapter.validate_json(raw)
        except PydanticValidationError as e:
            raise StorageReadError(f"Malformed value under {self.name!r}: {e.error_count()} error(s)") from e

    def __repr__(self):
        return f"StoreKey({self.name!r})"


CART = StoreKey("cart", List[CartLine], list)
PENDING_ORDER = StoreKey("pending_order", Optional[PendingOrder], lambda: None)
CUSTOMER_PROFILE = StoreKey("customer", Optional[Customer], lambda: None)
PROMO_CODE = StoreKey("promo", Optional[str], lambda: None)
AUTH_TOKEN = StoreKey("token", Optional[str], lambda: None)
AUTH_ROLE = StoreKey("role", Optional[str], lambda: None)


class PersistentStore:
    def __init__(self, session_factory, *, tab_id: str = None, prefix: str = None):
        self._session_factory = session_factory
        self.tab_id = tab_id or uuid.uuid4().hex
        self.prefix = settings.STORE_KEY_PREFIX if prefix is None else prefix
        self._handlers: Dict[str, List[ChangeHandler]] = {}

        # (version, writer) of every key as this tab last saw it
        self._seen: Dict[str, Tuple[int, Optional[str]]] = {}
        try:
            self._seen = self._markers()
        except SQLAlchemyError as e:
            logger.warning("Store unavailable at startup: %s", e)

    def _full_key(self, key: StoreKey) -> str:
        return f"{self.prefix}{key.name}"

    def _markers(self) -> Dict[str, Tuple[int, Optional[str]]]:
        db = self._session_factory()
        try:
            rows = (
                db.query(StoreEntry.key, StoreEntry.version, StoreEntry.writer)
                .filter(StoreEntry.key.startswith(self.prefix, autoescape=True))
                .all()
            )
            return {k: (version, writer) for k, version, writer in rows}
        finally:
            db.close()

    # --- Reads ---

    def get_raw(self, key: StoreKey) -> Optional[str]:
        db = self._session_factory()
        try:
            entry = db.get(StoreEntry, self._full_key(key))
            return entry.value if entry else None
        finally:
            db.close()

    def get(self, key: StoreKey[T]) -> T:
        """Typed read. Missing, removed or malformed values read as the key's default."""
        try:
            raw = self.get_raw(key)
        except SQLAlchemyError as e:
            logger.warning("Store read failed for %s: %s", key.name, e)
            return key.default()

        if not raw:
            return key.default()
        try:
            return key.decode(raw)
        except StorageReadError as e:
            logger.warning("Ignoring stored value: %s", e)
            return key.default()

    # --- Writes ---

    def set(self, key: StoreKey[T], value: T) -> None:
        self.set_many({key: value})

    def remove(self, key: StoreKey) -> None:
        self.set_many({key: None})

    def set_many(self, values: Dict[StoreKey, Any]) -> None:
        """Writes every key in one transaction. ``None`` leaves a tombstone."""
        written = {}
        db = self._session_factory()
        try:
            for key, value in values.items():
                full_key = self._full_key(key)
                entry = db.get(StoreEntry, full_key)
                if entry is None:
                    entry = StoreEntry(key=full_key, version=0)
                    db.add(entry)
                entry.value = None if value is None else key.encode(value)
                entry.version = (entry.version or 0) + 1
                entry.writer = self.tab_id
                written[full_key] = (entry.version, self.tab_id)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            names = ", ".join(k.name for k in values)
            logger.error("Store write failed for %s: %s", names, e)
            raise StorageWriteError(f"Could not save {names}") from e
        finally:
            db.close()
        self._seen.update(written)

    # --- Cross-tab changes ---

    def on_external_change(self, key: StoreKey, handler: ChangeHandler) -> Callable[[], None]:
        """Calls ``handler(key_name)`` when another tab writes ``key``. Returns an unsubscribe function."""
        handlers = self._handlers.setdefault(key.name, [])
        handlers.append(handler)

        def unsubscribe():
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def sync(self) -> List[str]:
        """Notifies subscribers of keys other tabs changed since the last sync."""
        try:
            current = self._markers()
        except SQLAlchemyError as e:
            logger.warning("Store sync skipped: %s", e)
            return []

        changed = []
        for full_key, marker in current.items():
            if self._seen.get(full_key) == marker:
                continue
            self._seen[full_key] = marker
            if marker[1] != self.tab_id:
                changed.append(full_key[len(self.prefix):])

        for name in changed:
            logger.debug("Key %s changed in another tab", name)
            for handler in list(self._handlers.get(name, [])):
                handler(name)
        return changed

    # --- Activity log ---

    def log_event(self, action: str, resource: str, status: str = "SUCCESS", meta: dict = None) -> None:
        db = self._session_factory()
        try:
            write_log(db, tab=self.tab_id, action=action, resource=resource, status=status, meta=meta)
        except SQLAlchemyError as e:
            db.rollback()
            logger.warning("Failed to write activity log %s: %s", action, e)
        finally:
            db.close()
