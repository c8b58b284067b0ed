"""
Observable state holder for view-models.

A StateHolder owns one immutable snapshot. Writers replace it atomically
through `update`, readers either poll `value`, register a callback, or
iterate `stream()` from an event loop.
"""

from __future__ import annotations

import asyncio
import threading
from typing import AsyncIterator, Callable, Generic, List, TypeVar

T = TypeVar("T")


class StateHolder(Generic[T]):
	def __init__(self, initial: T):
		self._value = initial
		self._lock = threading.RLock()
		self._callbacks: List[Callable[[T], None]] = []
		self._waiters: List[tuple[asyncio.AbstractEventLoop, asyncio.Event]] = []

	@property
	def value(self) -> T:
		return self._value

	def update(self, fn: Callable[[T], T]) -> T:
		"""
		Replace the snapshot with fn(current) and publish it.
		Equal snapshots are not re-published.
		"""
		with self._lock:
			new_value = fn(self._value)
			if new_value == self._value:
				return self._value
			self._value = new_value
			for callback in list(self._callbacks):
				callback(new_value)
			for loop, event in list(self._waiters):
				loop.call_soon_threadsafe(event.set)
			return new_value

	def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
		"""
		Call `callback` with the current snapshot now and on every change.
		Returns a function that removes the subscription.
		"""
		with self._lock:
			self._callbacks.append(callback)
			callback(self._value)

		def unsubscribe():
			with self._lock:
				if callback in self._callbacks:
					self._callbacks.remove(callback)

		return unsubscribe

	async def stream(self) -> AsyncIterator[T]:
		"""Yield the current snapshot, then the latest one after each change."""
		waiter = (asyncio.get_running_loop(), asyncio.Event())
		with self._lock:
			self._waiters.append(waiter)
		try:
			while True:
				waiter[1].clear()
				yield self._value
				await waiter[1].wait()
		finally:
			with self._lock:
				self._waiters.remove(waiter)

	async def wait_for(self, predicate: Callable[[T], bool]) -> T:
		"""Wait until a snapshot satisfies `predicate` and return it."""
		snapshots = self.stream()
		try:
			async for value in snapshots:
				if predicate(value):
					return value
		finally:
			await snapshots.aclose()
		# This is normally unreachable because the stream never ends.
		raise RuntimeError("state stream ended unexpectedly")
