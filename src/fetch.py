from dataclasses import dataclass, field
from typing import List

from config import GlobalConfig
from filters import should_skip
from interfaces import ImageSearchAPI, ImageStore
from models import Image


@dataclass
class SearchSummary:
	keyword: str
	kept: List[Image] = field(default_factory=list)
	skipped: int = 0
	saved: int = 0


def _describe(image: Image) -> str:
	size = f"{image.width}x{image.height}" if image.width and image.height else "?x?"
	site = image.display_sitename or "unknown site"
	return f"{image.image_url} ({size}, {site})"


def run_search(
	api: ImageSearchAPI,
	store: ImageStore | None,
	keyword: str,
	config: GlobalConfig,
) -> SearchSummary:
	"""
	Search for images and optionally bookmark the results
	"""

	summary = SearchSummary(keyword=keyword)
	limit = config.runtime.limit
	total_label = str(limit) if limit is not None else "∞"

	for image in api.iter_images(keyword):
		skip, reason = should_skip(image, config)
		if skip:
			summary.skipped += 1
			print(f"[{keyword}] skip {reason or 'filtered'}: {image.image_url or 'no url'}")
			continue

		summary.kept.append(image)
		print(f"[{keyword}] {len(summary.kept)}/{total_label} {_describe(image)}")

		if limit and len(summary.kept) >= limit:
			break

	if not config.runtime.save or not summary.kept:
		return summary

	if config.runtime.dry_run:
		print(f"[DRY-RUN] would bookmark {len(summary.kept)} images")
		return summary

	if store is None:
		raise ValueError("a store is required to save bookmarks")

	summary.saved = store.add_images(summary.kept)
	print(f"[OK] Bookmarked {summary.saved} images")
	return summary
