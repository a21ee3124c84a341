"""Firestore-backed secret store (durable across restarts)."""

from datetime import UTC, datetime, timedelta
from typing import Any, Callable, Optional

from google.api_core import exceptions as gexc
from google.cloud import firestore  # type: ignore
from google.cloud.firestore_v1.base_query import FieldFilter

from secretdrop.core.errors import InternalError
from secretdrop.core.logging import structured_log
from secretdrop.models.entities import Secret
from secretdrop.services.key_generator import KeyGenerator
from secretdrop.services.secret_store import SecretStore

SWEEP_BATCH_SIZE = 200


def get_firestore_client(project_id: Optional[str] = None) -> firestore.Client:
    """Return Firestore client for project (ambient credentials)."""
    if project_id:
        return firestore.Client(project=project_id)
    return firestore.Client()


def _utcnow() -> datetime:
    return datetime.now(UTC)


def take_in_transaction(
    transaction: Any,
    ref: Any,
    now: datetime,
) -> Optional[Secret]:
    """Read and delete one secret document inside a transaction.

    Firestore retries the transaction if the document changes between the
    read and the commit, so two readers can never both see it.
    """
    snapshot = ref.get(transaction=transaction)
    if not snapshot.exists:
        return None
    transaction.delete(ref)
    secret = Secret.from_firestore_dict(ref.id, snapshot.to_dict() or {})
    if secret.is_expired(now):
        return None
    secret.consumed = True
    return secret


class FirestoreSecretStore(SecretStore):
    """One document per key in a Firestore collection.

    Storage failures surface as InternalError with a generic message.
    """

    backend_name = "firestore"

    def __init__(
        self,
        client: Any,
        collection: str = "secrets",
        key_generator: Optional[KeyGenerator] = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
        **kwargs: Any,
    ) -> None:
        super().__init__(key_generator, **kwargs)
        self._client = client
        self._collection = collection
        self._clock = clock

    def _ref(self, key: str) -> Any:
        return self._client.collection(self._collection).document(key)

    def _insert(self, key: str, payload: bytes, ttl: Optional[float], content_type: str) -> bool:
        now = self._clock()
        secret = Secret(
            key=key,
            payload=payload,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl) if ttl else None,
            content_type=content_type,
        )
        try:
            # create() fails if the document exists, live or not yet swept.
            self._ref(key).create(secret.to_firestore_dict())
        except gexc.AlreadyExists:
            return False
        except gexc.GoogleAPICallError as e:
            raise self._internal("secret.put", e) from e
        return True

    def _take(self, key: str) -> Optional[Secret]:
        try:
            transaction = self._client.transaction()
            take = firestore.transactional(take_in_transaction)
            return take(transaction, self._ref(key), self._clock())
        except gexc.GoogleAPICallError as e:
            raise self._internal("secret.take_once", e) from e

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        current = now or self._clock()
        query = (
            self._client.collection(self._collection)
            .where(filter=FieldFilter("expires_at", "<=", current))
            .limit(SWEEP_BATCH_SIZE)
        )
        removed = 0
        try:
            while True:
                docs = list(query.stream())
                if not docs:
                    return removed
                batch = self._client.batch()
                for doc in docs:
                    batch.delete(doc.reference)
                batch.commit()
                removed += len(docs)
                if len(docs) < SWEEP_BATCH_SIZE:
                    return removed
        except gexc.GoogleAPICallError as e:
            raise self._internal("secret.sweep", e) from e

    def is_live(self, key: str) -> bool:
        try:
            snapshot = self._ref(key).get()
        except gexc.GoogleAPICallError as e:
            raise self._internal("secret.is_live", e) from e
        if not snapshot.exists:
            return False
        secret = Secret.from_firestore_dict(key, snapshot.to_dict() or {})
        return not secret.is_expired(self._clock())

    def count(self) -> int:
        try:
            result = self._client.collection(self._collection).count().get()
        except gexc.GoogleAPICallError as e:
            raise self._internal("secret.count", e) from e
        return int(result[0][0].value)

    def ping(self) -> None:
        try:
            list(self._client.collection(self._collection).limit(1).stream())
        except gexc.GoogleAPICallError as e:
            raise self._internal("secret.ping", e) from e

    def close(self) -> None:
        close = getattr(self._client, "close", None)
        if callable(close):
            close()

    @staticmethod
    def _internal(operation: str, exc: Exception) -> InternalError:
        structured_log(
            "ERROR",
            "Firestore call failed",
            operation=operation,
            error={"type": type(exc).__name__, "message": str(exc)},
        )
        return InternalError()
