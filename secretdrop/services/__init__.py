"""Services: key generation, secret storage, expiry sweeping."""

from secretdrop.services.expiry import ExpiryScheduler
from secretdrop.services.key_generator import KeyGenerator
from secretdrop.services.secret_store import MemorySecretStore, SecretStore
from secretdrop.services.store_factory import build_secret_store

__all__ = [
    "ExpiryScheduler",
    "KeyGenerator",
    "MemorySecretStore",
    "SecretStore",
    "build_secret_store",
]
