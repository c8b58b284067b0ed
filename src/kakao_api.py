from __future__ import annotations

from typing import Dict, Any, Iterator

import requests

from config import GlobalConfig, MAX_PAGE, MAX_PAGE_SIZE, clamp
from models import Image, SearchResponse
from rate import rate_sleep


class KakaoAPI:
	"""
	Simple client for the Kakao image search REST endpoint.
	"""

	def __init__(self, config: GlobalConfig, dump_raw: bool = False):
		"""
		Create an API wrapper bound to the configured endpoint and key.

		Args:
			config: Global configuration (api + search sections are used).
			dump_raw: When true, responses are printed to stdout for debugging.
		"""
		self.config = config
		self.dump_raw = dump_raw

	def search_images(self, query: str, page: int = 1) -> SearchResponse:
		"""
		Fetch a single page of image search results.
		Raises requests.HTTPError for non-2xx responses.
		"""
		api_cfg = self.config.api
		search_cfg = self.config.search

		url = f"{api_cfg.base_url}/search/image"
		params: Dict[str, Any] = {
			"query": query,
			"page": clamp(page, 1, MAX_PAGE),
			"size": clamp(search_cfg.page_size, 1, MAX_PAGE_SIZE),
			"sort": search_cfg.sort,
		}

		r = requests.get(url, headers=self._auth_headers(), params=params, timeout=api_cfg.timeout_seconds)
		r.raise_for_status()

		data = r.json()
		if self.dump_raw:
			import json
			import sys
			print(json.dumps(data, ensure_ascii=False))
			sys.stdout.flush()

		return SearchResponse.from_json(data, keyword=query)

	def iter_images(self, query: str) -> Iterator[Image]:
		"""
		Iterate over search results for a query.
		Walks pages until the API reports the end, a page comes back empty,
		or search.max_pages is reached.
		"""
		max_pages = clamp(self.config.search.max_pages, 1, MAX_PAGE)
		page = 1

		while True:
			response = self.search_images(query, page=page)
			if not response.documents:
				break

			for image in response.documents:
				yield image

			if response.meta.is_end or page >= max_pages:
				break

			page += 1
			rate_sleep(self.config)

	def _auth_headers(self) -> Dict[str, str]:
		"""Authorization headers for search API calls."""
		return {
			"Authorization": f"KakaoAK {self.config.api.resolve_api_key()}",
			"User-Agent": self.config.api.user_agent,
		}
