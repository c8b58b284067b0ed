import time

from config import GlobalConfig


def rate_sleep(config: GlobalConfig):
	"""
	Sleep for the configured pause between search result pages.

	This helper centralizes the rate-control delay so future logic
	(e.g., jitter) can be added in one place.
	"""
	if config.search.delay_seconds > 0:
		time.sleep(config.search.delay_seconds)
