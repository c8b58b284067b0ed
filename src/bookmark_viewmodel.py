from __future__ import annotations

import asyncio
import threading
import traceback
from dataclasses import dataclass, replace
from typing import AsyncIterator, Callable, Optional, Sequence, Tuple

from interfaces import ImageStore, ImageStoreError
from models import Image
from state import StateHolder


GENERIC_ERROR_MESSAGE = "error_message"
LOAD_ERROR_MESSAGE = "load_error_message"

USER_MESSAGES = {
	GENERIC_ERROR_MESSAGE: "Something went wrong. Please try again.",
	LOAD_ERROR_MESSAGE: "Could not load bookmarks.",
}


@dataclass(frozen=True)
class BookmarkUiState:
	is_loading: bool = False
	result: Tuple[Image, ...] = ()
	is_edit_mode: bool = False
	is_delete_images: bool = False
	user_message: Optional[str] = None


class BookmarkViewModel:
	"""
	State owner for the bookmark screen.

	Intents return immediately; store work runs as tasks on the event loop
	the view-model was created on. Only the most recently started query
	(load_all or search) may update `result`, whatever order the store
	answers in.
	"""

	def __init__(self, store: ImageStore, loop: asyncio.AbstractEventLoop | None = None):
		self.store = store
		self._loop = loop or asyncio.get_running_loop()
		self.state: StateHolder[BookmarkUiState] = StateHolder(BookmarkUiState())

		self._pending: set[str] = set()
		self._pending_lock = threading.Lock()

		self._generation = 0
		self._query_task: asyncio.Task | None = None
		self._tasks: set[asyncio.Task] = set()

		self.load_all()

	@property
	def pending_selection(self) -> frozenset[str]:
		with self._pending_lock:
			return frozenset(self._pending)

	# --- queries ------------------------------------------------------

	def load_all(self):
		"""Show every bookmark, following the store until superseded."""
		self._start_query(self.store.stream_all)

	def search(self, keyword: str):
		"""Show bookmarks matching keyword, superseding any running query."""
		self._start_query(lambda: self.store.stream_search(keyword))

	def _start_query(self, open_stream: Callable[[], AsyncIterator[Sequence[Image]]]):
		self.state.update(lambda s: replace(s, is_loading=True))

		self._generation += 1
		if self._query_task is not None:
			self._query_task.cancel()
		self._query_task = self._launch(self._collect(self._generation, open_stream))

	async def _collect(self, generation: int, open_stream: Callable[[], AsyncIterator[Sequence[Image]]]):
		try:
			async for images in open_stream():
				# stale query
				if generation != self._generation:
					return
				result = tuple(images)
				self.state.update(lambda s: replace(s, is_loading=False, result=result))
		except Exception as e:
			if generation != self._generation:
				return
			print(f"[ERROR] Failed to load bookmarks: {e}")
			if not isinstance(e, ImageStoreError):
				traceback.print_exc()
			self.state.update(lambda s: replace(s, is_loading=False, user_message=LOAD_ERROR_MESSAGE))

	# --- edit mode ----------------------------------------------------

	def toggle_edit_mode(self):
		"""Turn edit mode on or off. The selection always starts over."""
		self.state.update(lambda s: replace(s, is_edit_mode=not s.is_edit_mode, is_delete_images=False))
		self._clear_selection()

	def exit_edit_mode(self):
		self.state.update(lambda s: replace(s, is_edit_mode=False, is_delete_images=False))
		self._clear_selection()

	def _clear_selection(self):
		with self._pending_lock:
			self._pending.clear()

	def toggle_selection(self, image_id: str):
		"""Add an image to the deletion set, or remove it if already there."""
		with self._pending_lock:
			if image_id in self._pending:
				self._pending.remove(image_id)
			else:
				self._pending.add(image_id)

	# --- deletion -----------------------------------------------------

	def confirm_delete(self) -> asyncio.Task | None:
		"""
		Delete the selected images. Does nothing when the selection is empty.

		The selection is kept afterwards; callers react to is_delete_images
		(e.g. by calling exit_edit_mode). Returns the running task so the
		caller can await the outcome.
		"""
		ids = self.pending_selection
		if not ids:
			return None
		return self._launch(self._delete(ids))

	async def _delete(self, ids: frozenset[str]):
		try:
			ok = await self.store.delete_batch(ids)
		except Exception as e:
			print(f"[ERROR] Failed to delete bookmarks: {e}")
			if not isinstance(e, ImageStoreError):
				traceback.print_exc()
			ok = False

		if ok:
			self.state.update(lambda s: replace(s, is_delete_images=True))
		else:
			self.state.update(lambda s: replace(
				s,
				is_delete_images=False,
				user_message=GENERIC_ERROR_MESSAGE,
			))

	# --- lifecycle ----------------------------------------------------

	def _launch(self, coro) -> asyncio.Task:
		task = self._loop.create_task(coro)
		self._tasks.add(task)
		task.add_done_callback(self._tasks.discard)
		return task

	async def close(self):
		"""End the session: cancel subscriptions and any pending delete."""
		self._generation += 1
		tasks = list(self._tasks)
		for task in tasks:
			task.cancel()
		await asyncio.gather(*tasks, return_exceptions=True)
		self._query_task = None
