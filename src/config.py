from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import os
import re
import yaml

from humanfriendly import parse_timespan


_RATE_PATTERN = re.compile(
	r"^\s*(?P<count>[\d\.]+)\s*(?:/|per\s+)(?P<period>.+?)\s*$",
	re.IGNORECASE,
)

DEFAULT_USER_AGENT = "imagemark/1.0"
DEFAULT_BASE_URL = "https://dapi.kakao.com/v2"
API_KEY_ENV = "KAKAO_REST_API_KEY"

SORT_ORDERS = ("accuracy", "recency")

# API limits for the image search endpoint
MAX_PAGE = 50
MAX_PAGE_SIZE = 80

_OFF_SENTINELS = {"off"}


def _ensure_quantity_expression(expr: str) -> str:
	"""Add a default quantity when a human-friendly duration is missing one."""
	expr = expr.strip()
	if not expr:
		raise ValueError("empty delay expression")
	if any(ch.isdigit() for ch in expr):
		return expr
	return f"1 {expr}"


def _parse_delay_value(value: str | int | float) -> float:
	"""
	Parse a human-friendly delay specification.
	Supported forms:
	- numeric seconds (int/float)
	- strings like "500 milliseconds", "2 seconds"
	- rate expressions like "2/second" (events per unit)
	"""

	if isinstance(value, bool):
		raise TypeError("Boolean is not a valid duration")

	if isinstance(value, (int, float)):
		if value < 0:
			raise ValueError("delay must not be negative")
		return float(value)

	if isinstance(value, str):
		text = value.strip()
		if not text:
			raise ValueError("empty delay string")

		match = _RATE_PATTERN.match(text)
		if match:
			count = float(match.group("count"))
			if count <= 0:
				raise ValueError("rate count must be positive")
			period_expr = _ensure_quantity_expression(match.group("period"))
			period_seconds = parse_timespan(period_expr)
			return period_seconds / count

		return parse_timespan(_ensure_quantity_expression(text))

	raise TypeError(f"Unsupported delay value type: {type(value)!r}")


def _parse_optional_delay(value) -> float:
	"""
	Parse a delay that can be disabled with "off", 0, false or an empty value.
	Disabled delays are returned as 0.0.
	"""
	if value is None or value is False:
		return 0.0
	if isinstance(value, str) and (not value.strip() or value.strip().lower() in _OFF_SENTINELS):
		return 0.0
	return _parse_delay_value(value)


def clamp(value: int, low: int, high: int) -> int:
	return max(low, min(int(value), high))


###############################################################################
# Search API configuration
###############################################################################

@dataclass
class ApiConfig:
	"""
	Connection settings for the image search API.
	"""

	base_url: str = DEFAULT_BASE_URL
	rest_api_key: str = ""
	timeout_seconds: float = 15.0
	user_agent: str = DEFAULT_USER_AGENT

	def resolve_api_key(self) -> str:
		"""Return the configured key, falling back to the environment."""
		return self.rest_api_key or os.environ.get(API_KEY_ENV, "")


###############################################################################
# Path configuration
###############################################################################

@dataclass
class PathConfig:
	bookmarks_file: Path = Path("bookmarks.jsonl")


###############################################################################
# Search config
###############################################################################

@dataclass
class ImageFilterConfig:
	min_width: int = 0
	min_height: int = 0
	include_gif: bool = True
	blocked_sites: list[str] = field(default_factory=list)   # glob patterns

@dataclass
class SearchConfig:
	page_size: int = 30
	max_pages: int = 1
	sort: str = "accuracy"             # accuracy / recency
	delay_seconds: float = 0.5         # pause between result pages
	filter: ImageFilterConfig = field(default_factory=ImageFilterConfig)

	def set_override_rate(self, value: str | int | float):
		"""
		Update delay_seconds from a rate or duration expression
		("2/second", "1 second", 0.25).
		"""
		self.delay_seconds = _parse_optional_delay(value)


###############################################################################
# Runtime flags
###############################################################################

@dataclass
class RuntimeConfig:
	dry_run: bool = False
	limit: int | None = None
	save: bool = False


###############################################################################
# Global config root
###############################################################################

@dataclass
class GlobalConfig:
	api: ApiConfig = field(default_factory=ApiConfig)
	paths: PathConfig = field(default_factory=PathConfig)
	search: SearchConfig = field(default_factory=SearchConfig)
	runtime: RuntimeConfig = field(default_factory=RuntimeConfig)

	config_file: Path | None = None


###############################################################################
# Loader
###############################################################################

def load_config(path: str | Path) -> GlobalConfig:
	"""
	Read a YAML configuration file and return a populated GlobalConfig.

	Durations (api.timeout, search.delay) accept the same human-friendly
	expressions as `_parse_delay_value`; page limits are clamped to what
	the search API accepts.
	"""
	p = Path(path)
	if not p.exists():
		raise FileNotFoundError(f"Config file not found: {p}")

	with p.open("r", encoding="utf-8") as f:
		raw = yaml.safe_load(f) or {}

	cfg = GlobalConfig()
	cfg.config_file = p

	# --- api ----------------------------------------------------------
	if "api" in raw:
		r = raw["api"] or {}
		cfg.api.base_url = str(r.get("base_url", cfg.api.base_url)).rstrip("/")
		cfg.api.rest_api_key = r.get("rest_api_key", cfg.api.rest_api_key) or ""
		if "useragent" in r:
			cfg.api.user_agent = r["useragent"]
		if "timeout" in r:
			timeout = _parse_delay_value(r["timeout"])
			if timeout <= 0:
				raise ValueError("api.timeout must be positive")
			cfg.api.timeout_seconds = timeout

	# --- paths --------------------------------------------------------
	if "paths" in raw:
		r = raw["paths"] or {}
		if "bookmarks_file" in r:
			cfg.paths.bookmarks_file = Path(r["bookmarks_file"])

	# --- search -------------------------------------------------------
	if "search" in raw:
		r = raw["search"] or {}
		if "page_size" in r:
			cfg.search.page_size = clamp(r["page_size"], 1, MAX_PAGE_SIZE)
		if "max_pages" in r:
			cfg.search.max_pages = clamp(r["max_pages"], 1, MAX_PAGE)
		if "sort" in r:
			sort = str(r["sort"]).lower()
			if sort not in SORT_ORDERS:
				raise ValueError(f"search.sort must be one of {SORT_ORDERS}, got {r['sort']!r}")
			cfg.search.sort = sort

		delay_value = r.get("delay")
		rate_value = r.get("rate")
		if delay_value is not None and rate_value is not None:
			raise ValueError("search.rate and search.delay are mutually exclusive")
		if delay_value is not None:
			cfg.search.delay_seconds = _parse_optional_delay(delay_value)
		elif rate_value is not None:
			cfg.search.set_override_rate(rate_value)

		if "filter" in r:
			fr = r["filter"] or {}
			filter_cfg = cfg.search.filter
			filter_cfg.min_width = int(fr.get("min_width", filter_cfg.min_width))
			filter_cfg.min_height = int(fr.get("min_height", filter_cfg.min_height))
			filter_cfg.include_gif = bool(fr.get("include_gif", filter_cfg.include_gif))
			blocked = fr.get("blocked_sites")
			if blocked:
				if isinstance(blocked, str):
					blocked = [blocked]
				filter_cfg.blocked_sites = [str(site) for site in blocked]

	# --- runtime ------------------------------------------------------
	if "runtime" in raw:
		r = raw["runtime"] or {}
		cfg.runtime.dry_run = r.get("dry_run", cfg.runtime.dry_run)
		cfg.runtime.limit = r.get("limit", cfg.runtime.limit)
		cfg.runtime.save = r.get("save", cfg.runtime.save)

	return cfg
