import pytest

from gourmet.errors import UpstreamError
from gourmet.models import ProviderKind, Query
from gourmet.providers import GurunaviProvider, HotPepperProvider, get_provider, range_to_meters
from tests.conftest import hotpepper_payload


def test_hotpepper_request_passes_range_code_and_result_cap() -> None:
    url, params = HotPepperProvider().build_request(Query(lat=35.681236, lng=139.767125, range_code=3), "k")

    assert url == "https://webservice.recruit.co.jp/hotpepper/gourmet/v1/"
    assert params == {
        "key": "k",
        "lat": "35.681236",
        "lng": "139.767125",
        "range": "3",
        "count": "100",
        "format": "json",
    }


@pytest.mark.parametrize(
    ("code", "meters"),
    [(1, 300), (2, 500), (3, 1000), (4, 2000), (5, 3000), (0, 1000), (9, 1000)],
)
def test_range_to_meters(code: int, meters: int) -> None:
    assert range_to_meters(code) == meters


def test_gurunavi_request_converts_range_to_meters() -> None:
    url, params = GurunaviProvider().build_request(Query(lat=35.0, lng=139.0, range_code=5), "keyid-1")

    assert url == "https://api.gnavi.co.jp/RestSearchAPI/v3/"
    assert params == {
        "keyid": "keyid-1",
        "latitude": "35.0",
        "longitude": "139.0",
        "range": "3000",
        "hit_per_page": "100",
    }


def test_hotpepper_error_inside_success_body_raises_upstream_error() -> None:
    body = {"results": {"api_version": "1.30", "error": [{"code": 2000, "message": "APIキーまたはIPアドレスの認証エラーです。"}]}}

    with pytest.raises(UpstreamError) as excinfo:
        HotPepperProvider().parse_response(body)

    assert excinfo.value.status == 200
    assert "2000" in excinfo.value.body
    assert "認証エラー" in excinfo.value.body


def test_hotpepper_parse_response_normalizes_shops() -> None:
    shops = HotPepperProvider().parse_response(hotpepper_payload(3))

    assert [shop.name for shop in shops] == ["Shop 1", "Shop 2", "Shop 3"]


def test_gurunavi_not_found_is_treated_as_empty() -> None:
    provider = GurunaviProvider()
    not_found = {"@attributes": {"api_version": "v3"}, "error": [{"code": 404, "message": "Not Found"}]}

    assert provider.is_empty_response(404, not_found) is True
    assert provider.is_empty_response(404, {"error": [{"code": 429, "message": "Too Many"}]}) is False
    assert provider.is_empty_response(500, not_found) is False
    assert provider.is_empty_response(404, None) is False


def test_hotpepper_never_treats_errors_as_empty() -> None:
    assert HotPepperProvider().is_empty_response(404, {"error": [{"code": 404}]}) is False


def test_get_provider_by_kind() -> None:
    assert isinstance(get_provider("gurunavi"), GurunaviProvider)
    assert isinstance(get_provider(ProviderKind.HOTPEPPER), HotPepperProvider)
    with pytest.raises(ValueError):
        get_provider("yelp")
