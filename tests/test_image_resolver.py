from types import SimpleNamespace

import requests

from pupmatch.image_resolver import ImageResolver, is_well_formed_url


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def head(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response


def _response(status_code=200, content_type="image/jpeg"):
    return SimpleNamespace(status_code=status_code, headers={"Content-Type": content_type})


def test_is_well_formed_url():
    assert is_well_formed_url("https://cdn.example.com/rex.jpg")
    assert is_well_formed_url("http://example.com/uc?export=view&id=1")
    assert not is_well_formed_url("ftp://example.com/rex.jpg")
    assert not is_well_formed_url("rex.jpg")
    assert not is_well_formed_url(None)


def test_image_content_type_is_accepted_from_any_host():
    session = FakeSession(_response(content_type="image/webp; charset=binary"))

    assert ImageResolver(session=session).is_image("https://any-host.example/pic")
    url, kwargs = session.calls[0]
    assert url == "https://any-host.example/pic"
    assert kwargs["allow_redirects"] is True


def test_non_image_and_error_responses_are_rejected():
    assert not ImageResolver(session=FakeSession(_response(content_type="text/html"))).is_image(
        "https://example.com/page"
    )
    assert not ImageResolver(session=FakeSession(_response(status_code=404))).is_image(
        "https://example.com/missing.jpg"
    )
    assert not ImageResolver(
        session=FakeSession(error=requests.ConnectionError("refused"))
    ).is_image("https://example.com/rex.jpg")


def test_malformed_urls_skip_the_request_and_probe_can_be_disabled():
    session = FakeSession(_response())

    assert not ImageResolver(session=session).is_image("not a url")
    assert session.calls == []
    assert ImageResolver(session=session, probe=False).is_image("https://example.com/x")
    assert session.calls == []
