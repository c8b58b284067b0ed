import pytest
import requests

from config import GlobalConfig
from kakao_api import KakaoAPI
from models import Image, MetaData, SearchResponse
from helpers import make_document


class DummyResponse:
	def __init__(self, payload, status_code=200):
		self.status_code = status_code
		self.payload = payload

	def raise_for_status(self):
		if self.status_code >= 400:
			raise requests.HTTPError(f"{self.status_code} error")

	def json(self):
		return self.payload


def _make_config() -> GlobalConfig:
	cfg = GlobalConfig()
	cfg.api.rest_api_key = "secret"
	cfg.search.delay_seconds = 0
	return cfg


def test_search_images_sends_query_and_auth(monkeypatch):
	cfg = _make_config()
	cfg.search.page_size = 500
	cfg.search.sort = "recency"
	api = KakaoAPI(cfg)

	captured = {}

	def fake_get(url, headers, params, timeout):
		captured["url"] = url
		captured["headers"] = headers
		captured["params"] = params
		captured["timeout"] = timeout
		return DummyResponse({
			"meta": {"total_count": 1, "pageable_count": 1, "is_end": True},
			"documents": [make_document()],
		})

	monkeypatch.setattr("kakao_api.requests.get", fake_get)

	response = api.search_images("cat", page=99)

	assert captured["url"] == "https://dapi.kakao.com/v2/search/image"
	assert captured["headers"]["Authorization"] == "KakaoAK secret"
	assert captured["params"] == {"query": "cat", "page": 50, "size": 80, "sort": "recency"}
	assert captured["timeout"] == cfg.api.timeout_seconds
	assert response.meta.is_end is True
	assert response.documents[0].keyword == "cat"


def test_search_images_uses_env_key(monkeypatch):
	cfg = GlobalConfig()
	monkeypatch.setenv("KAKAO_REST_API_KEY", "from-env")
	api = KakaoAPI(cfg)

	assert api._auth_headers()["Authorization"] == "KakaoAK from-env"


def test_search_images_raises_http_error(monkeypatch):
	api = KakaoAPI(_make_config())
	monkeypatch.setattr(
		"kakao_api.requests.get",
		lambda url, headers, params, timeout: DummyResponse({}, status_code=401),
	)

	with pytest.raises(requests.HTTPError):
		api.search_images("cat")


def _page(names, is_end):
	return SearchResponse(
		meta=MetaData(is_end=is_end),
		documents=[
			Image.from_document(make_document(image_url=f"https://cdn.example/{n}.jpg"))
			for n in names
		],
	)


def test_iter_images_walks_pages_until_end(monkeypatch):
	cfg = _make_config()
	cfg.search.max_pages = 10
	api = KakaoAPI(cfg)

	pages = {1: _page(["a", "b"], False), 2: _page(["c"], True)}
	calls = []

	def fake_search(self, query, page=1):
		calls.append(page)
		return pages[page]

	monkeypatch.setattr(KakaoAPI, "search_images", fake_search)
	monkeypatch.setattr("rate.time.sleep", lambda delay: None)

	urls = [image.image_url for image in api.iter_images("cat")]

	assert urls == [f"https://cdn.example/{n}.jpg" for n in "abc"]
	assert calls == [1, 2]


def test_iter_images_stops_at_max_pages(monkeypatch):
	cfg = _make_config()
	cfg.search.max_pages = 2
	api = KakaoAPI(cfg)
	calls = []

	def fake_search(self, query, page=1):
		calls.append(page)
		return _page([f"p{page}"], False)

	monkeypatch.setattr(KakaoAPI, "search_images", fake_search)

	assert len(list(api.iter_images("cat"))) == 2
	assert calls == [1, 2]


def test_iter_images_stops_on_empty_page(monkeypatch):
	cfg = _make_config()
	cfg.search.max_pages = 5
	api = KakaoAPI(cfg)
	calls = []

	def fake_search(self, query, page=1):
		calls.append(page)
		return _page([], False)

	monkeypatch.setattr(KakaoAPI, "search_images", fake_search)

	assert list(api.iter_images("cat")) == []
	assert calls == [1]
