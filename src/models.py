from __future__ import annotations

from dataclasses import dataclass, field, asdict
import datetime as dt
from typing import Any, Dict, List

from util import image_id_for, parse_time


@dataclass(frozen=True)
class Image:
	"""
	A single image record, either fresh from a search or bookmarked locally.
	"""

	id: str
	image_url: str
	thumbnail_url: str = ""
	width: int = 0
	height: int = 0
	display_sitename: str = ""
	doc_url: str = ""
	datetime: str = ""                  # as delivered by the API
	collection: str = ""
	keyword: str = ""                   # query that produced this image
	saved_at: str | None = None         # set when bookmarked

	@classmethod
	def from_document(cls, doc: Dict[str, Any], keyword: str = "") -> "Image":
		"""Build an Image from one search API document."""
		image_url = doc.get("image_url") or ""
		return cls(
			id=image_id_for(image_url) if image_url else "",
			image_url=image_url,
			thumbnail_url=doc.get("thumbnail_url") or "",
			width=int(doc.get("width") or 0),
			height=int(doc.get("height") or 0),
			display_sitename=doc.get("display_sitename") or "",
			doc_url=doc.get("doc_url") or "",
			datetime=doc.get("datetime") or "",
			collection=doc.get("collection") or "",
			keyword=keyword,
		)

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> "Image":
		known = {name for name in cls.__dataclass_fields__}
		return cls(**{k: v for k, v in data.items() if k in known})

	def to_dict(self) -> Dict[str, Any]:
		return asdict(self)

	@property
	def created(self) -> dt.datetime | None:
		"""Parsed `datetime`, or None when missing or malformed."""
		if not self.datetime:
			return None
		try:
			return parse_time(self.datetime)
		except ValueError:
			return None


@dataclass(frozen=True)
class MetaData:
	total_count: int = 0
	pageable_count: int = 0
	is_end: bool = True

	@classmethod
	def from_json(cls, data: Dict[str, Any] | None) -> "MetaData":
		data = data or {}
		return cls(
			total_count=int(data.get("total_count") or 0),
			pageable_count=int(data.get("pageable_count") or 0),
			is_end=bool(data.get("is_end", True)),
		)


@dataclass
class SearchResponse:
	meta: MetaData = field(default_factory=MetaData)
	documents: List[Image] = field(default_factory=list)

	@classmethod
	def from_json(cls, payload: Dict[str, Any], keyword: str = "") -> "SearchResponse":
		"""Decode the search endpoint's JSON body."""
		return cls(
			meta=MetaData.from_json(payload.get("meta")),
			documents=[
				Image.from_document(doc, keyword)
				for doc in (payload.get("documents") or [])
			],
		)
