from fnmatch import fnmatch
from urllib.parse import urlparse

from config import GlobalConfig
from models import Image


GIF_EXTENSIONS = {".gif"}


def _looks_like_gif(image: Image) -> bool:
	"""Check the image URL extension for an animated-GIF suffix."""
	path = urlparse(image.image_url).path.lower()
	return any(path.endswith(ext) for ext in GIF_EXTENSIONS)


def should_skip(image: Image, config: GlobalConfig) -> tuple[bool, str | None]:
	"""
	Return (True, reason) when a search result should be skipped.
	"""

	filter_cfg = config.search.filter

	if not image.image_url:
		return True, "no_image_url"

	if (filter_cfg.min_width and image.width < filter_cfg.min_width) or \
		(filter_cfg.min_height and image.height < filter_cfg.min_height):
		return True, "too_small"

	if not filter_cfg.include_gif and _looks_like_gif(image):
		return True, "gif_filtered"

	site = (image.display_sitename or "").lower()
	if site:
		for pattern in filter_cfg.blocked_sites:
			if fnmatch(site, pattern.lower()):
				return True, "site_blocked"

	return False, None
