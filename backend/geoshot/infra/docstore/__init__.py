"""Document store access for the ranking pipeline."""

from __future__ import annotations

from typing import Optional

from geoshot.infra.docstore.base import (
	MAX_BATCH_WRITES,
	BatchCommitError,
	BatchLimitExceededError,
	DocumentNotFoundError,
	DocumentSnapshot,
	DocumentStore,
	DocumentStoreError,
	OrderBy,
	PendingWrite,
	TransactionError,
	WriteBatch,
)
from geoshot.infra.docstore.chunked import ChunkedWriteResult, commit_in_chunks
from geoshot.infra.docstore.memory import MemoryDocumentStore
from geoshot.infra.docstore.postgres import PostgresDocumentStore
from geoshot.settings import settings

_store: Optional[DocumentStore] = None


def build_store() -> DocumentStore:
	if settings.docstore_backend == "memory":
		return MemoryDocumentStore(max_batch_writes=settings.batch_write_limit)
	return PostgresDocumentStore(max_batch_writes=settings.batch_write_limit)


def get_store() -> DocumentStore:
	global _store
	if _store is None:
		_store = build_store()
	return _store


def set_store(store: Optional[DocumentStore]) -> None:
	global _store
	_store = store


__all__ = [
	"MAX_BATCH_WRITES",
	"BatchCommitError",
	"BatchLimitExceededError",
	"ChunkedWriteResult",
	"DocumentNotFoundError",
	"DocumentSnapshot",
	"DocumentStore",
	"DocumentStoreError",
	"MemoryDocumentStore",
	"OrderBy",
	"PendingWrite",
	"PostgresDocumentStore",
	"TransactionError",
	"WriteBatch",
	"build_store",
	"commit_in_chunks",
	"get_store",
	"set_store",
]
