from datetime import datetime
import hashlib


def parse_time(value: str) -> datetime:
	"""
	Parse an ISO8601 timestamp into a timezone-aware datetime.
	Supports trailing 'Z' (UTC), offset-aware strings and fractional seconds.
	"""
	if not value:
		raise ValueError("timestamp is empty")
	value = value.replace("Z", "+00:00")
	return datetime.fromisoformat(value)


def image_id_for(url: str) -> str:
	"""Stable identifier for an image: the sha256 hex digest of its URL."""
	if not url:
		raise ValueError("image url is empty")
	return hashlib.sha256(url.encode("utf-8")).hexdigest()
