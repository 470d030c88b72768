"""PostgreSQL-backed document store keeping each document as a JSONB row."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, TypeVar

import asyncpg

from geoshot.infra import postgres
from geoshot.infra.docstore.base import (
	MAX_BATCH_WRITES,
	DocumentNotFoundError,
	DocumentSnapshot,
	OrderBy,
	PendingWrite,
	TransactionError,
	WriteBatch,
	check_collection,
	split_path,
)

T = TypeVar("T")

_LOG = logging.getLogger(__name__)

_TS_KEY = "$ts"

_RETRYABLE = (
	asyncpg.exceptions.SerializationError,
	asyncpg.exceptions.DeadlockDetectedError,
)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS documents (
	path TEXT PRIMARY KEY,
	collection TEXT NOT NULL,
	doc_id TEXT NOT NULL,
	data JSONB NOT NULL,
	version BIGINT NOT NULL DEFAULT 1,
	seq BIGSERIAL,
	updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS documents_collection_seq_idx ON documents (collection, seq);
"""

_UPSERT_SQL = """
INSERT INTO documents (path, collection, doc_id, data)
VALUES ($1, $2, $3, $4::jsonb)
ON CONFLICT (path) DO UPDATE
SET data = EXCLUDED.data,
	version = documents.version + 1,
	updated_at = NOW()
"""

_MERGE_SQL = """
INSERT INTO documents (path, collection, doc_id, data)
VALUES ($1, $2, $3, $4::jsonb)
ON CONFLICT (path) DO UPDATE
SET data = documents.data || EXCLUDED.data,
	version = documents.version + 1,
	updated_at = NOW()
"""

_UPDATE_SQL = """
UPDATE documents
SET data = data || $2::jsonb,
	version = version + 1,
	updated_at = NOW()
WHERE path = $1
"""


def encode_value(value: Any) -> Any:
	"""Make a document JSON-safe; datetimes become ``{"$ts": iso}``."""

	if isinstance(value, datetime):
		return {_TS_KEY: value.isoformat()}
	if isinstance(value, Mapping):
		return {str(key): encode_value(nested) for key, nested in value.items()}
	if isinstance(value, (list, tuple)):
		return [encode_value(item) for item in value]
	return value


def decode_value(value: Any) -> Any:
	if isinstance(value, dict):
		if len(value) == 1 and _TS_KEY in value:
			return datetime.fromisoformat(value[_TS_KEY])
		return {key: decode_value(nested) for key, nested in value.items()}
	if isinstance(value, list):
		return [decode_value(item) for item in value]
	return value


def _dumps(data: Any) -> str:
	return json.dumps(encode_value(data), separators=(",", ":"))


def _loads(raw: Any) -> dict[str, Any]:
	if isinstance(raw, (str, bytes)):
		raw = json.loads(raw)
	return decode_value(raw)


async def _apply_writes(conn: asyncpg.Connection, writes: Sequence[PendingWrite]) -> None:
	for write in writes:
		collection, doc_id = split_path(write.path)
		payload = _dumps(write.data)
		if write.must_exist:
			status = await conn.execute(_UPDATE_SQL, write.path, payload)
			if status.endswith(" 0"):
				raise DocumentNotFoundError(write.path)
		elif write.merge:
			await conn.execute(_MERGE_SQL, write.path, collection, doc_id, payload)
		else:
			await conn.execute(_UPSERT_SQL, write.path, collection, doc_id, payload)


async def ensure_schema(pool: Optional[asyncpg.pool.Pool] = None) -> None:
	pool = pool or await postgres.get_pool()
	async with pool.acquire() as conn:
		await conn.execute(SCHEMA_SQL)


class PostgresTransaction:
	"""Pessimistic transaction: reads lock rows, writes apply at commit."""

	def __init__(self, conn: asyncpg.Connection) -> None:
		self._conn = conn
		self.writes: list[PendingWrite] = []

	async def get(self, path: str) -> DocumentSnapshot:
		split_path(path)
		row = await self._conn.fetchrow("SELECT data FROM documents WHERE path = $1 FOR UPDATE", path)
		return DocumentSnapshot(path=path, data=_loads(row["data"]) if row else None)

	def set(self, path: str, data: Mapping[str, Any], *, merge: bool = False) -> None:  # noqa: A003
		split_path(path)
		self.writes.append(PendingWrite(path=path, data=dict(data), merge=merge))


class PostgresDocumentStore:
	"""Document store over the shared asyncpg pool."""

	def __init__(self, pool: Optional[asyncpg.pool.Pool] = None, *, max_batch_writes: int = MAX_BATCH_WRITES) -> None:
		self._pool = pool
		self.max_batch_writes = max_batch_writes

	async def _get_pool(self) -> asyncpg.pool.Pool:
		if self._pool is None:
			self._pool = await postgres.get_pool()
		return self._pool

	async def get(self, path: str) -> DocumentSnapshot:
		split_path(path)
		pool = await self._get_pool()
		async with pool.acquire() as conn:
			row = await conn.fetchrow("SELECT data FROM documents WHERE path = $1", path)
		return DocumentSnapshot(path=path, data=_loads(row["data"]) if row else None)

	async def set(self, path: str, data: Mapping[str, Any]) -> None:  # noqa: A003
		pool = await self._get_pool()
		async with pool.acquire() as conn:
			await _apply_writes(conn, [PendingWrite(path=path, data=dict(data))])

	async def update(self, path: str, data: Mapping[str, Any]) -> None:
		pool = await self._get_pool()
		async with pool.acquire() as conn:
			await _apply_writes(conn, [PendingWrite(path=path, data=dict(data), merge=True, must_exist=True)])

	async def query(
		self,
		collection: str,
		*,
		where: Sequence[tuple[str, Any]] = (),
		order_by: OrderBy | None = None,
		limit: int | None = None,
	) -> list[DocumentSnapshot]:
		collection = check_collection(collection)
		clauses = ["collection = $1"]
		params: list[Any] = [collection]
		for name, value in where:
			params.append(name)
			params.append(_dumps(value))
			clauses.append(f"data -> ${len(params) - 1}::text = ${len(params)}::jsonb")
		order_sql = "seq ASC"
		if order_by is not None:
			params.append(order_by.field)
			idx = len(params)
			clauses.append(f"jsonb_typeof(data -> ${idx}::text) IS NOT NULL AND jsonb_typeof(data -> ${idx}::text) <> 'null'")
			direction = "DESC" if order_by.descending else "ASC"
			order_sql = f"data -> ${idx}::text {direction}, seq ASC"
		sql = f"SELECT path, data FROM documents WHERE {' AND '.join(clauses)} ORDER BY {order_sql}"
		if limit is not None:
			params.append(int(limit))
			sql += f" LIMIT ${len(params)}"
		pool = await self._get_pool()
		async with pool.acquire() as conn:
			rows = await conn.fetch(sql, *params)
		return [DocumentSnapshot(path=row["path"], data=_loads(row["data"])) for row in rows]

	async def count(self, collection: str) -> int:
		collection = check_collection(collection)
		pool = await self._get_pool()
		async with pool.acquire() as conn:
			value = await conn.fetchval("SELECT COUNT(*) FROM documents WHERE collection = $1", collection)
		return int(value or 0)

	def batch(self) -> WriteBatch:
		return WriteBatch(committer=self._commit_batch, max_writes=self.max_batch_writes)

	async def _commit_batch(self, writes: Sequence[PendingWrite]) -> None:
		pool = await self._get_pool()
		async with pool.acquire() as conn:
			async with conn.transaction():
				await _apply_writes(conn, writes)

	async def run_transaction(
		self,
		fn: Callable[[PostgresTransaction], Awaitable[T]],
		*,
		max_attempts: int = 5,
	) -> T:
		pool = await self._get_pool()
		for attempt in range(1, max_attempts + 1):
			try:
				async with pool.acquire() as conn:
					async with conn.transaction(isolation="repeatable_read"):
						txn = PostgresTransaction(conn)
						result = await fn(txn)
						await _apply_writes(conn, txn.writes)
				return result
			except _RETRYABLE as exc:
				_LOG.debug("docstore.transaction.retry", extra={"attempt": attempt, "error": type(exc).__name__})
		raise TransactionError(f"transaction aborted after {max_attempts} attempts")


__all__ = ["PostgresDocumentStore", "PostgresTransaction", "ensure_schema", "encode_value", "decode_value", "SCHEMA_SQL"]
