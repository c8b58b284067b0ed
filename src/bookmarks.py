#!/usr/bin/env python3
"""
Utility to list, search and delete bookmarked images
through the bookmark view-model.
"""

import argparse
import asyncio
import sys

from bookmark_viewmodel import BookmarkViewModel, BookmarkUiState, USER_MESSAGES
from config import load_config
from imagedb import JsonlImageDB, LocalImageStore
from interfaces import ImageStore


def _format_image(image) -> str:
	created = image.created
	when = created.strftime("%Y-%m-%d") if created else "----------"
	return f"{image.id[:12]}  {when}  {image.display_sitename or '-'}  {image.image_url}"


async def list_bookmarks(store: ImageStore, keyword: str | None = None) -> BookmarkUiState:
	"""Load all bookmarks (or search them) and return the settled state."""
	vm = BookmarkViewModel(store)
	try:
		if keyword:
			vm.search(keyword)
		return await vm.state.wait_for(lambda s: not s.is_loading)
	finally:
		await vm.close()


async def delete_bookmarks(store: ImageStore, ids: list[str]) -> BookmarkUiState:
	"""Select the given ids in edit mode, delete them and leave edit mode."""
	vm = BookmarkViewModel(store)
	try:
		await vm.state.wait_for(lambda s: not s.is_loading)
		vm.toggle_edit_mode()
		for image_id in dict.fromkeys(ids):
			vm.toggle_selection(image_id)

		task = vm.confirm_delete()
		if task is not None:
			await task
		outcome = vm.state.value
		vm.exit_edit_mode()
		return outcome
	finally:
		await vm.close()


def _resolve_ids(db: JsonlImageDB, specs: list[str]) -> list[str]:
	"""
	Expand id prefixes (as printed by `list`) into full ids.
	Raises ValueError for unknown or ambiguous prefixes.
	"""
	resolved = []
	for spec in specs:
		matches = [image.id for image in db.all() if image.id.startswith(spec)]
		if not matches:
			raise ValueError(f"no bookmark matches id {spec}")
		if len(matches) > 1:
			raise ValueError(f"id prefix {spec} is ambiguous ({len(matches)} bookmarks)")
		resolved.append(matches[0])
	return resolved


def parse_args(argv=None):
	parser = argparse.ArgumentParser(
		description="List, search and delete bookmarked images."
	)
	parser.add_argument(
		"--config",
		default="config.yaml",
		help="Path to configuration file (default: config.yaml)",
	)
	sub = parser.add_subparsers(dest="command", required=True)

	list_p = sub.add_parser("list", help="Show bookmarks")
	list_p.add_argument(
		"--keyword",
		default=None,
		help="Only show bookmarks matching this keyword",
	)

	delete_p = sub.add_parser("delete", help="Delete bookmarks by id")
	delete_p.add_argument(
		"ids",
		nargs="+",
		help="Bookmark ids or unique id prefixes",
	)

	return parser.parse_args(argv)


def main(argv=None):
	"""Entry point for the bookmarks CLI utility."""
	args = parse_args(argv)

	try:
		config = load_config(args.config)
	except Exception as exc:
		print(f"[ERROR] Failed to load config: {exc}")
		return 1

	db = JsonlImageDB(config.paths.bookmarks_file)
	store = LocalImageStore(db)

	if args.command == "list":
		state = asyncio.run(list_bookmarks(store, args.keyword))
		if state.user_message:
			print(f"[ERROR] {USER_MESSAGES.get(state.user_message, state.user_message)}")
			return 1
		for image in state.result:
			print(_format_image(image))
		print(f"[DONE] {len(state.result)} bookmarks")
		return 0

	try:
		ids = _resolve_ids(db, args.ids)
	except ValueError as exc:
		print(f"[ERROR] {exc}")
		return 1

	state = asyncio.run(delete_bookmarks(store, ids))
	if not state.is_delete_images:
		message = USER_MESSAGES.get(state.user_message, state.user_message)
		print(f"[ERROR] {message}")
		return 1

	print(f"[DONE] Deleted {len(ids)} bookmarks")
	return 0


def cli():
	sys.exit(main())


if __name__ == "__main__":
	cli()
