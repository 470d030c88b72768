"""In-process document store used for local development and tests."""

from __future__ import annotations

import asyncio
import copy
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Sequence, TypeVar

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


@dataclass(slots=True)
class _Entry:
	collection: str
	data: dict[str, Any]
	version: int


class _TransactionConflict(Exception):
	pass


class MemoryTransaction:
	"""Optimistic transaction: remembers read versions, validates them at commit."""

	def __init__(self, store: "MemoryDocumentStore") -> None:
		self._store = store
		self._read_versions: dict[str, int] = {}
		self._writes: list[PendingWrite] = []

	async def get(self, path: str) -> DocumentSnapshot:
		split_path(path)
		entry = self._store._docs.get(path)
		self._read_versions[path] = entry.version if entry else 0
		# concurrent transactions may interleave here
		await asyncio.sleep(0)
		return DocumentSnapshot(path=path, data=copy.deepcopy(entry.data) if entry else None)

	def set(self, path: str, data: Mapping[str, Any], *, merge: bool = False) -> None:  # noqa: A003
		split_path(path)
		self._writes.append(PendingWrite(path=path, data=dict(data), merge=merge))

	def _commit(self) -> None:
		for path, version in self._read_versions.items():
			entry = self._store._docs.get(path)
			current = entry.version if entry else 0
			if current != version:
				raise _TransactionConflict(path)
		self._store._apply(self._writes)


class MemoryDocumentStore:
	"""Dictionary-backed store keyed by document path, preserving insertion order."""

	def __init__(self, *, max_batch_writes: int = MAX_BATCH_WRITES) -> None:
		self._docs: dict[str, _Entry] = {}
		self.max_batch_writes = max_batch_writes

	def _apply(self, writes: Sequence[PendingWrite]) -> None:
		# validate the whole batch before applying any of it
		created: set[str] = set()
		for write in writes:
			if write.must_exist and write.path not in self._docs and write.path not in created:
				raise DocumentNotFoundError(write.path)
			created.add(write.path)
		for write in writes:
			collection, _ = split_path(write.path)
			entry = self._docs.get(write.path)
			payload = copy.deepcopy(dict(write.data))
			if entry is None:
				self._docs[write.path] = _Entry(collection=collection, data=payload, version=1)
				continue
			if write.merge:
				entry.data.update(payload)
			else:
				entry.data = payload
			entry.version += 1

	async def get(self, path: str) -> DocumentSnapshot:
		split_path(path)
		entry = self._docs.get(path)
		return DocumentSnapshot(path=path, data=copy.deepcopy(entry.data) if entry else None)

	async def set(self, path: str, data: Mapping[str, Any]) -> None:  # noqa: A003
		self._apply([PendingWrite(path=path, data=dict(data))])

	async def update(self, path: str, data: Mapping[str, Any]) -> None:
		self._apply([PendingWrite(path=path, data=dict(data), merge=True, must_exist=True)])

	async def query(
		self,
		collection: str,
		*,
		where: Sequence[tuple[str, Any]] = (),
		order_by: OrderBy | None = None,
		limit: int | None = None,
	) -> list[DocumentSnapshot]:
		collection = check_collection(collection)
		matches: list[tuple[str, dict[str, Any]]] = []
		for path, entry in self._docs.items():
			if entry.collection != collection:
				continue
			if all(name in entry.data and entry.data[name] == value for name, value in where):
				matches.append((path, entry.data))
		if order_by is not None:
			matches = [item for item in matches if item[1].get(order_by.field) is not None]
			# sorted() is stable, so ties keep insertion order
			matches = sorted(matches, key=lambda item: item[1][order_by.field], reverse=order_by.descending)
		if limit is not None:
			matches = matches[:limit]
		return [DocumentSnapshot(path=path, data=copy.deepcopy(data)) for path, data in matches]

	async def count(self, collection: str) -> int:
		collection = check_collection(collection)
		return sum(1 for entry in self._docs.values() if entry.collection == collection)

	def batch(self) -> WriteBatch:
		return WriteBatch(committer=self._commit_batch, max_writes=self.max_batch_writes)

	async def _commit_batch(self, writes: Sequence[PendingWrite]) -> None:
		self._apply(writes)

	async def run_transaction(
		self,
		fn: Callable[[MemoryTransaction], Awaitable[T]],
		*,
		max_attempts: int = 5,
	) -> T:
		for attempt in range(1, max_attempts + 1):
			txn = MemoryTransaction(self)
			result = await fn(txn)
			try:
				txn._commit()
			except _TransactionConflict as exc:
				_LOG.debug("docstore.transaction.conflict", extra={"path": str(exc), "attempt": attempt})
				continue
			return result
		raise TransactionError(f"transaction aborted after {max_attempts} attempts")


__all__ = ["MemoryDocumentStore", "MemoryTransaction"]
