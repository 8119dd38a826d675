"""Client-tier storage: guarded key-value store and async document store."""
from studio.storage.document_store import DocumentStore, DocumentStoreError, create_document_store
from studio.storage.guard import StorageGuard, StorageQuotaExceeded
from studio.storage.keys import DocumentCategory, document_key, document_prefix, influencer_list_key
from studio.storage.kv_backend import SqlKeyValueBackend, entry_size
from studio.storage.kv_store import KeyValueStore

__all__ = [
    "DocumentStore",
    "DocumentStoreError",
    "create_document_store",
    "StorageGuard",
    "StorageQuotaExceeded",
    "DocumentCategory",
    "document_key",
    "document_prefix",
    "influencer_list_key",
    "SqlKeyValueBackend",
    "entry_size",
    "KeyValueStore",
]
