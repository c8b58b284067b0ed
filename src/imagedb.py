from __future__ import annotations

import asyncio
import json
import os
import tempfile
import threading
from datetime import datetime, timezone
from dataclasses import replace
from pathlib import Path
from typing import AbstractSet, AsyncIterator, Callable, Dict, Iterable, List, Optional

from interfaces import ImageStoreError
from models import Image


class JsonlImageDB:
	def __init__(self, path: Path):
		"""Store and query bookmarked images backed by a JSONL file."""
		self.path = Path(path)
		self.entries: Dict[str, Image] = {}  # id -> image, insertion ordered

		if self.path.exists():
			self._load()

	def _load(self):
		"""Populate the in-memory cache from the on-disk database."""
		with open(self.path, "r", encoding="utf-8") as f:
			for line in f:
				line = line.strip()
				if not line:
					continue
				try:
					image = Image.from_dict(json.loads(line))
				except (json.JSONDecodeError, TypeError, AttributeError):
					# Ignore malformed lines so a corrupt record does not break load.
					continue
				if isinstance(image.id, str) and image.id:
					self.entries[image.id] = image

	def get(self, image_id: str) -> Optional[Image]:
		"""Return the stored image for the given id, if any."""
		return self.entries.get(image_id)

	def all(self) -> List[Image]:
		"""Every bookmark, in the order it was first saved."""
		return list(self.entries.values())

	def search(self, keyword: str) -> List[Image]:
		"""
		Case-insensitive substring match on the search keyword, site name,
		collection and document URL. An empty keyword matches everything.
		"""
		needle = (keyword or "").strip().lower()
		if not needle:
			return self.all()
		return [
			image for image in self.entries.values()
			if any(
				needle in (value or "").lower()
				for value in (image.keyword, image.display_sitename, image.collection, image.doc_url)
			)
		]

	def add(self, images: Iterable[Image]) -> List[Image]:
		"""
		Save images, stamping saved_at on new ones.
		Appends to disk, or rewrites the file when an existing id was replaced.
		"""
		now = datetime.now(timezone.utc).isoformat()
		entries = dict(self.entries)
		added: List[Image] = []
		replaced = False
		for image in images:
			if not image.id:
				continue
			existing = entries.get(image.id)
			if existing is not None:
				image = replace(image, saved_at=existing.saved_at or now)
				replaced = True
			elif not image.saved_at:
				image = replace(image, saved_at=now)
			entries[image.id] = image
			added.append(image)

		if not added:
			return added

		if replaced:
			self._write_entries(entries)
		else:
			self.path.parent.mkdir(parents=True, exist_ok=True)
			with open(self.path, "a", encoding="utf-8") as f:
				for image in added:
					f.write(json.dumps(image.to_dict(), ensure_ascii=False) + "\n")

		# memory only follows a successful write
		self.entries = entries
		return added

	def _write_entries(self, entries: Dict[str, Image]):
		"""
		Replace the database file with the given entries.
		Writes a temp file next to the database and renames it into place,
		so a failed write leaves the previous file untouched.
		"""
		self.path.parent.mkdir(parents=True, exist_ok=True)
		tmp = tempfile.NamedTemporaryFile(
			"w",
			encoding="utf-8",
			dir=self.path.parent,
			prefix=f".{self.path.name}.",
			suffix=".tmp",
			delete=False,
		)
		tmp_path = Path(tmp.name)
		try:
			with tmp as f:
				for image in entries.values():
					f.write(json.dumps(image.to_dict(), ensure_ascii=False) + "\n")
			os.replace(tmp_path, self.path)
		except OSError:
			tmp_path.unlink(missing_ok=True)
			raise

	def delete_by_ids(self, ids: Iterable[str]) -> List[Image]:
		"""Remove entries with the provided ids and rewrite disk."""
		targets = set(ids)
		if not targets:
			return []

		removed = [image for image_id, image in self.entries.items() if image_id in targets]
		if not removed:
			return removed

		remaining = {
			image_id: image
			for image_id, image in self.entries.items()
			if image_id not in targets
		}
		self._write_entries(remaining)
		self.entries = remaining

		return removed


class _Subscriber:
	"""A stream consumer: wake-ups are posted to the loop it runs on."""

	def __init__(self, loop: asyncio.AbstractEventLoop):
		self.loop = loop
		self.changed = asyncio.Event()

	def notify(self):
		self.loop.call_soon_threadsafe(self.changed.set)


class LocalImageStore:
	"""
	ImageStore over a JsonlImageDB.

	Streams emit the current collection right away and again after every
	change. Wake-ups are conflated, so a slow consumer only sees the latest
	snapshot. Safe to share between threads and event loops.
	"""

	def __init__(self, db: JsonlImageDB):
		self.db = db
		self._lock = threading.Lock()
		self._subscribers: set[_Subscriber] = set()

	def stream_all(self) -> AsyncIterator[List[Image]]:
		return self._stream(self.db.all)

	def stream_search(self, keyword: str) -> AsyncIterator[List[Image]]:
		return self._stream(lambda: self.db.search(keyword))

	async def _stream(self, query: Callable[[], List[Image]]) -> AsyncIterator[List[Image]]:
		subscriber = _Subscriber(asyncio.get_running_loop())
		with self._lock:
			self._subscribers.add(subscriber)
		try:
			while True:
				subscriber.changed.clear()
				with self._lock:
					snapshot = query()
				yield snapshot
				await subscriber.changed.wait()
		finally:
			with self._lock:
				self._subscribers.discard(subscriber)

	def _notify(self):
		with self._lock:
			subscribers = list(self._subscribers)
		for subscriber in subscribers:
			subscriber.notify()

	def add_images(self, images: Iterable[Image]) -> int:
		"""
		Bookmark images and wake every stream.
		Raises ImageStoreError when the database file cannot be written.
		"""
		try:
			with self._lock:
				added = self.db.add(images)
		except OSError as e:
			raise ImageStoreError(f"failed to save bookmarks: {e}") from e
		if added:
			self._notify()
		return len(added)

	def _delete_locked(self, ids: AbstractSet[str]) -> List[Image]:
		with self._lock:
			return self.db.delete_by_ids(ids)

	async def delete_batch(self, ids: AbstractSet[str]) -> bool:
		"""Delete bookmarks by id. Returns False when the file could not be rewritten."""
		try:
			removed = await asyncio.to_thread(self._delete_locked, ids)
		except OSError as e:
			print(f"[ERROR] Failed to delete bookmarks: {e}")
			return False
		if removed:
			self._notify()
		return True
