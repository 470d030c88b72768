"""Storage contracts for the hierarchical document store used by the ranking jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Protocol, Sequence, TypeVar

# Maximum number of mutations a single atomic batch may carry.
MAX_BATCH_WRITES = 500

T = TypeVar("T")


class DocumentStoreError(Exception):
	"""Base class for document store failures."""


class DocumentNotFoundError(DocumentStoreError):
	"""Raised when a merge update targets a document that does not exist."""

	def __init__(self, path: str) -> None:
		super().__init__(f"document not found: {path}")
		self.path = path


class BatchLimitExceededError(DocumentStoreError):
	"""Raised when more mutations are staged than one batch may hold."""


class BatchCommitError(DocumentStoreError):
	"""Raised when an atomic batch fails to commit; none of its writes applied."""


class TransactionError(DocumentStoreError):
	"""Raised when a read-modify-write transaction cannot be committed."""


def split_path(path: str) -> tuple[str, str]:
	"""Split ``a/b/c/d`` into its parent collection ``a/b/c`` and document id ``d``."""

	segments = [segment for segment in path.strip("/").split("/") if segment]
	if not segments or len(segments) % 2 != 0:
		raise ValueError(f"invalid document path: {path!r}")
	return "/".join(segments[:-1]), segments[-1]


def check_collection(collection: str) -> str:
	segments = [segment for segment in collection.strip("/").split("/") if segment]
	if not segments or len(segments) % 2 != 1:
		raise ValueError(f"invalid collection path: {collection!r}")
	return "/".join(segments)


@dataclass(slots=True)
class DocumentSnapshot:
	"""Point-in-time copy of one document."""

	path: str
	data: dict[str, Any] | None

	@property
	def id(self) -> str:  # noqa: A003
		return self.path.rsplit("/", 1)[-1]

	@property
	def exists(self) -> bool:
		return self.data is not None

	def get(self, name: str, default: Any = None) -> Any:
		if self.data is None:
			return default
		return self.data.get(name, default)


@dataclass(slots=True, frozen=True)
class OrderBy:
	field: str
	descending: bool = True


@dataclass(slots=True, frozen=True)
class PendingWrite:
	"""A mutation staged for a batch: full overwrite, or shallow merge when ``merge``.

	``must_exist`` marks update semantics: the merge fails if the document is missing.
	"""

	path: str
	data: Mapping[str, Any]
	merge: bool = False
	must_exist: bool = False


@dataclass(slots=True)
class WriteBatch:
	"""Bounded set of writes committed atomically by the owning store."""

	committer: Callable[[Sequence[PendingWrite]], Awaitable[None]]
	max_writes: int = MAX_BATCH_WRITES
	writes: list[PendingWrite] = field(default_factory=list)
	committed: bool = False

	def __len__(self) -> int:
		return len(self.writes)

	def _stage(self, write: PendingWrite) -> None:
		if self.committed:
			raise DocumentStoreError("batch already committed")
		if len(self.writes) >= self.max_writes:
			raise BatchLimitExceededError(f"batch holds at most {self.max_writes} writes")
		split_path(write.path)
		self.writes.append(write)

	def set(self, path: str, data: Mapping[str, Any], *, merge: bool = False) -> None:  # noqa: A003
		self._stage(PendingWrite(path=path, data=dict(data), merge=merge))

	def update(self, path: str, data: Mapping[str, Any]) -> None:
		self._stage(PendingWrite(path=path, data=dict(data), merge=True, must_exist=True))

	async def commit(self) -> None:
		if self.committed:
			raise DocumentStoreError("batch already committed")
		if not self.writes:
			self.committed = True
			return
		try:
			await self.committer(tuple(self.writes))
		except BatchCommitError:
			raise
		except Exception as exc:
			raise BatchCommitError(f"batch of {len(self.writes)} writes failed: {exc}") from exc
		self.committed = True


class Transaction(Protocol):
	"""Handle passed to transaction callbacks."""

	async def get(self, path: str) -> DocumentSnapshot:
		...

	def set(self, path: str, data: Mapping[str, Any], *, merge: bool = False) -> None:  # noqa: A003
		...


class DocumentStore(Protocol):
	"""Abstract hierarchical document store (collections of JSON documents)."""

	async def get(self, path: str) -> DocumentSnapshot:
		"""Read a single document; missing documents yield a snapshot with ``data=None``."""

	async def set(self, path: str, data: Mapping[str, Any]) -> None:  # noqa: A003
		"""Create or fully overwrite a document."""

	async def update(self, path: str, data: Mapping[str, Any]) -> None:
		"""Shallow-merge fields into an existing document."""

	async def query(
		self,
		collection: str,
		*,
		where: Sequence[tuple[str, Any]] = (),
		order_by: OrderBy | None = None,
		limit: int | None = None,
	) -> list[DocumentSnapshot]:
		"""Equality-filtered, optionally ordered and limited listing of a collection."""

	async def count(self, collection: str) -> int:
		"""Number of documents directly inside ``collection``."""

	def batch(self) -> WriteBatch:
		"""Start a new atomic write batch."""

	async def run_transaction(
		self,
		fn: Callable[[Transaction], Awaitable[T]],
		*,
		max_attempts: int = 5,
	) -> T:
		"""Run ``fn`` as an isolated read-modify-write, retrying on contention."""
