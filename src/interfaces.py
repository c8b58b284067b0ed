from __future__ import annotations

from typing import AbstractSet, AsyncIterator, Iterable, Iterator, Protocol, Sequence

from models import Image, SearchResponse


class ImageStoreError(Exception):
	"""Raised by an ImageStore when it cannot serve or modify bookmarks."""


class ImageSearchAPI(Protocol):
	def search_images(self, query: str, page: int = 1) -> SearchResponse:
		"""Fetch a single page of search results."""
		...

	def iter_images(self, query: str) -> Iterator[Image]:
		"""
		Iterate over search results across pages.
		Implementations should handle pagination internally.
		"""
		...


class ImageStore(Protocol):
	def stream_all(self) -> AsyncIterator[Sequence[Image]]:
		"""
		Emit the current bookmark collection, then re-emit on every change.
		Never terminates under normal operation.
		"""
		...

	def stream_search(self, keyword: str) -> AsyncIterator[Sequence[Image]]:
		"""Same shape as stream_all, filtered by keyword."""
		...

	async def delete_batch(self, ids: AbstractSet[str]) -> bool:
		"""Delete the given bookmarks. Returns False when the deletion failed."""
		...

	def add_images(self, images: Iterable[Image]) -> int:
		"""Bookmark images and return how many were stored."""
		...
