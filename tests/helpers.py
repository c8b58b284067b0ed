from __future__ import annotations

import asyncio
from copy import deepcopy

from models import Image


_DEFAULT_DOCUMENT = {
	"collection": "blog",
	"thumbnail_url": "https://search.example/thumb/1",
	"image_url": "https://cdn.example/media/cat.jpg",
	"width": 640,
	"height": 480,
	"display_sitename": "Example Blog",
	"doc_url": "https://blog.example/posts/1",
	"datetime": "2017-06-21T15:59:30.000+09:00",
}


def make_document(**overrides) -> dict:
	doc = deepcopy(_DEFAULT_DOCUMENT)
	for key, val in overrides.items():
		doc[key] = val
	return doc


def make_image(name: str, keyword: str = "", **overrides) -> Image:
	doc = make_document(image_url=f"https://cdn.example/media/{name}.jpg", **overrides)
	return Image.from_document(doc, keyword)


class FakeImageStore:
	"""
	Store double whose streams are fed by hand.

	Every stream_all/stream_search call opens a new queue; push a list into
	it to emit, or an exception to fail the stream.
	"""

	def __init__(self, delete_result=True):
		self.all_streams: list[asyncio.Queue] = []
		self.search_streams: list[tuple[str, asyncio.Queue]] = []
		self.delete_calls: list[set[str]] = []
		self.delete_result = delete_result

	async def _drain(self, queue: asyncio.Queue):
		while True:
			item = await queue.get()
			if isinstance(item, Exception):
				raise item
			yield item

	def stream_all(self):
		queue = asyncio.Queue()
		self.all_streams.append(queue)
		return self._drain(queue)

	def stream_search(self, keyword):
		queue = asyncio.Queue()
		self.search_streams.append((keyword, queue))
		return self._drain(queue)

	async def delete_batch(self, ids):
		self.delete_calls.append(set(ids))
		if isinstance(self.delete_result, Exception):
			raise self.delete_result
		return self.delete_result

	def add_images(self, images):
		return len(list(images))


async def settle(rounds: int = 5):
	"""Let pending tasks on the running loop make progress."""
	for _ in range(rounds):
		await asyncio.sleep(0)
