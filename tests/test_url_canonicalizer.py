import pytest

from app.utils.url_canonicalizer import normalize_url

pytestmark = pytest.mark.unit


def test_bare_host_gets_https():
    assert normalize_url("www.Acme.vn/about") == "https://www.Acme.vn/about"


def test_existing_scheme_is_kept_as_written():
    assert normalize_url(" HTTP://User@Acme.com/Path?q=1 ") == "HTTP://User@Acme.com/Path?q=1"


@pytest.mark.parametrize("value", [None, "", "   ", "-", "N/A", "null"])
def test_placeholders_give_none(value):
    assert normalize_url(value) is None
