from datetime import timedelta

from models import Image, MetaData, SearchResponse
from util import image_id_for
from helpers import make_document


def test_from_document_derives_id_from_image_url():
	doc = make_document()

	image = Image.from_document(doc, keyword="cat")

	assert image.id == image_id_for(doc["image_url"])
	assert image.keyword == "cat"
	assert (image.width, image.height) == (640, 480)
	assert image.saved_at is None


def test_same_url_gives_same_id():
	a = Image.from_document(make_document(display_sitename="one"))
	b = Image.from_document(make_document(display_sitename="two"))

	assert a.id == b.id


def test_from_dict_ignores_unknown_keys():
	data = Image.from_document(make_document()).to_dict()
	data["legacy_field"] = 1

	assert Image.from_dict(data).to_dict() == Image.from_document(make_document()).to_dict()


def test_created_parses_api_datetime():
	image = Image.from_document(make_document())

	assert image.created.utcoffset() == timedelta(hours=9)
	assert image.created.year == 2017


def test_created_is_none_for_bad_datetime():
	assert Image.from_document(make_document(datetime="yesterday")).created is None
	assert Image.from_document(make_document(datetime="")).created is None


def test_search_response_from_json():
	payload = {
		"meta": {"total_count": 422583, "pageable_count": 3854, "is_end": False},
		"documents": [make_document(), make_document(image_url="https://cdn.example/b.png")],
	}

	response = SearchResponse.from_json(payload, keyword="cat")

	assert response.meta == MetaData(total_count=422583, pageable_count=3854, is_end=False)
	assert len(response.documents) == 2
	assert all(image.keyword == "cat" for image in response.documents)


def test_search_response_defaults_to_end_without_meta():
	response = SearchResponse.from_json({})

	assert response.meta.is_end is True
	assert response.documents == []
