"""Apply an unbounded list of writes as a sequence of bounded atomic batches."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence

from geoshot.infra.docstore.base import MAX_BATCH_WRITES, DocumentStore, PendingWrite
from geoshot.obs import metrics as obs_metrics

_LOG = logging.getLogger(__name__)


@dataclass(slots=True)
class ChunkedWriteResult:
	batch_sizes: list[int] = field(default_factory=list)

	@property
	def batches(self) -> int:
		return len(self.batch_sizes)

	@property
	def writes(self) -> int:
		return sum(self.batch_sizes)


def iter_chunks(writes: Sequence[PendingWrite], size: int) -> Iterator[Sequence[PendingWrite]]:
	if size < 1:
		raise ValueError("chunk size must be positive")
	for start in range(0, len(writes), size):
		yield writes[start : start + size]


async def commit_in_chunks(
	store: DocumentStore,
	writes: Iterable[PendingWrite],
	*,
	chunk_size: int = MAX_BATCH_WRITES,
	label: str = "default",
) -> ChunkedWriteResult:
	"""Commit ``writes`` in order, one atomic batch per chunk.

	Each chunk is committed before the next is staged. A failing commit raises
	``BatchCommitError``; chunks committed before it stay committed and later
	chunks are never attempted.
	"""

	pending = list(writes)
	result = ChunkedWriteResult()
	for chunk in iter_chunks(pending, chunk_size):
		batch = store.batch()
		for write in chunk:
			if write.must_exist:
				batch.update(write.path, write.data)
			else:
				batch.set(write.path, write.data, merge=write.merge)
		await batch.commit()
		result.batch_sizes.append(len(chunk))
		obs_metrics.record_batch_commit(label, len(chunk))
		_LOG.info(
			"docstore.batch.committed",
			extra={"label": label, "size": len(chunk), "committed_writes": result.writes, "total_writes": len(pending)},
		)
	return result


__all__ = ["ChunkedWriteResult", "commit_in_chunks", "iter_chunks"]
