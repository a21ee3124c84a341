"""Unit tests for the Firestore-backed store (mocked Firestore)."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as gexc

from secretdrop.core.errors import GenerationExhaustedError, InternalError, NotFoundError
from secretdrop.models.entities import Secret
from secretdrop.services.firestore_store import (
    SWEEP_BATCH_SIZE,
    FirestoreSecretStore,
    take_in_transaction,
)

NOW = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def _snapshot(data: dict | None) -> MagicMock:
    snap = MagicMock()
    snap.exists = data is not None
    snap.to_dict.return_value = data
    return snap


def _ref(data: dict | None, key: str = "k" * 43) -> MagicMock:
    ref = MagicMock()
    ref.id = key
    ref.get.return_value = _snapshot(data)
    return ref


@pytest.fixture
def fs_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def fs_store(fs_client: MagicMock) -> FirestoreSecretStore:
    return FirestoreSecretStore(fs_client, "secrets", clock=lambda: NOW, default_ttl_seconds=60)


def test_take_in_transaction_returns_and_deletes() -> None:
    ref = _ref({"payload": b"hello", "content_type": "text/plain", "created_at": NOW, "expires_at": None})
    transaction = MagicMock()
    secret = take_in_transaction(transaction, ref, NOW)
    assert secret is not None
    assert secret.payload == b"hello"
    assert secret.consumed is True
    ref.get.assert_called_once_with(transaction=transaction)
    transaction.delete.assert_called_once_with(ref)


def test_take_in_transaction_missing() -> None:
    transaction = MagicMock()
    assert take_in_transaction(transaction, _ref(None), NOW) is None
    transaction.delete.assert_not_called()


def test_take_in_transaction_expired_is_deleted_not_returned() -> None:
    ref = _ref({"payload": b"x", "created_at": NOW, "expires_at": NOW - timedelta(seconds=1)})
    transaction = MagicMock()
    assert take_in_transaction(transaction, ref, NOW) is None
    transaction.delete.assert_called_once_with(ref)


def test_put_creates_document_with_expiry(fs_store: FirestoreSecretStore, fs_client: MagicMock) -> None:
    key = fs_store.put(b"payload")
    doc_ref = fs_client.collection.return_value.document
    doc_ref.assert_called_with(key)
    data = doc_ref.return_value.create.call_args.args[0]
    assert data["payload"] == b"payload"
    assert data["created_at"] == NOW
    assert data["expires_at"] == NOW + timedelta(seconds=60)


def test_put_retries_on_already_exists(fs_store: FirestoreSecretStore, fs_client: MagicMock) -> None:
    create = fs_client.collection.return_value.document.return_value.create
    create.side_effect = [gexc.AlreadyExists("taken"), None]
    fs_store.put(b"x")
    assert create.call_count == 2


def test_put_exhausted(fs_store: FirestoreSecretStore, fs_client: MagicMock) -> None:
    create = fs_client.collection.return_value.document.return_value.create
    create.side_effect = gexc.AlreadyExists("taken")
    with pytest.raises(GenerationExhaustedError):
        fs_store.put(b"x")
    assert create.call_count == fs_store.key_max_attempts


def test_put_backend_failure_is_internal_error(fs_store: FirestoreSecretStore, fs_client: MagicMock) -> None:
    create = fs_client.collection.return_value.document.return_value.create
    create.side_effect = gexc.ServiceUnavailable("firestore down at 10.0.0.7")
    with pytest.raises(InternalError) as exc:
        fs_store.put(b"x")
    assert "10.0.0.7" not in exc.value.message


def test_take_backend_failure_is_internal_error(fs_store: FirestoreSecretStore, fs_client: MagicMock) -> None:
    fs_client.transaction.side_effect = gexc.ServiceUnavailable("down")
    with pytest.raises(InternalError):
        fs_store.take_once("a" * 43)


def test_take_malformed_key_skips_backend(fs_store: FirestoreSecretStore, fs_client: MagicMock) -> None:
    with pytest.raises(NotFoundError):
        fs_store.take_once("../../etc")
    fs_client.transaction.assert_not_called()


def test_sweep_deletes_expired_in_batches(fs_store: FirestoreSecretStore, fs_client: MagicMock) -> None:
    full = [MagicMock() for _ in range(SWEEP_BATCH_SIZE)]
    tail = [MagicMock() for _ in range(3)]
    query = fs_client.collection.return_value.where.return_value.limit.return_value
    query.stream.side_effect = [iter(full), iter(tail)]

    assert fs_store.sweep_expired() == SWEEP_BATCH_SIZE + 3
    batch = fs_client.batch.return_value
    assert batch.delete.call_count == SWEEP_BATCH_SIZE + 3
    assert batch.commit.call_count == 2
    f = fs_client.collection.return_value.where.call_args.kwargs["filter"]
    assert f.field_path == "expires_at"
    assert f.op_string == "<="
    assert f.value == NOW


def test_sweep_nothing_expired(fs_store: FirestoreSecretStore, fs_client: MagicMock) -> None:
    query = fs_client.collection.return_value.where.return_value.limit.return_value
    query.stream.return_value = iter([])
    assert fs_store.sweep_expired() == 0
    fs_client.batch.assert_not_called()


def test_is_live(fs_store: FirestoreSecretStore, fs_client: MagicMock) -> None:
    document = fs_client.collection.return_value.document
    document.return_value.get.return_value = _snapshot(
        {"payload": b"x", "created_at": NOW, "expires_at": NOW + timedelta(seconds=1)}
    )
    assert fs_store.is_live("k") is True
    document.return_value.get.return_value = _snapshot(
        {"payload": b"x", "created_at": NOW, "expires_at": NOW}
    )
    assert fs_store.is_live("k") is False
    document.return_value.get.return_value = _snapshot(None)
    assert fs_store.is_live("k") is False


def test_ping_failure(fs_store: FirestoreSecretStore, fs_client: MagicMock) -> None:
    fs_client.collection.return_value.limit.return_value.stream.side_effect = gexc.ServiceUnavailable("x")
    with pytest.raises(InternalError):
        fs_store.ping()


def test_secret_document_round_trip() -> None:
    secret = Secret(key="k", payload=b"p", created_at=NOW, expires_at=NOW, content_type="application/json")
    restored = Secret.from_firestore_dict("k", secret.to_firestore_dict())
    assert restored == secret
    assert restored.is_expired(NOW)
    assert not restored.is_expired(NOW - timedelta(microseconds=1))
