"""Secret store factory: in-memory or Firestore, per settings."""

from secretdrop.core.config import Settings
from secretdrop.services.key_generator import KeyGenerator
from secretdrop.services.secret_store import MemorySecretStore, SecretStore


def build_secret_store(settings: Settings) -> SecretStore:
    """Create the store selected by settings.storage_backend."""
    common = {
        "max_payload_bytes": settings.max_payload_bytes,
        "default_ttl_seconds": settings.default_ttl_seconds,
        "max_ttl_seconds": settings.max_ttl_seconds,
        "key_max_attempts": settings.key_max_attempts,
    }
    generator = KeyGenerator(settings.key_bytes)
    if settings.storage_backend == "firestore":
        from secretdrop.services.firestore_store import FirestoreSecretStore, get_firestore_client

        return FirestoreSecretStore(
            get_firestore_client(settings.gcp_project_id or None),
            settings.firestore_collection_secrets,
            generator,
            **common,
        )
    return MemorySecretStore(generator, num_shards=settings.store_shards, **common)
