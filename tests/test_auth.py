import pupmatch.auth as auth


def test_pin_matches_default_and_override(monkeypatch):
    monkeypatch.delenv("PUPMATCH_OWNER_PIN", raising=False)
    assert auth.pin_matches("owner123")
    assert auth.pin_matches(" owner123 ")
    assert not auth.pin_matches("1234")
    assert not auth.pin_matches(None)

    monkeypatch.setenv("PUPMATCH_OWNER_PIN", "4242")
    assert auth.pin_matches("4242")
    assert not auth.pin_matches("owner123")


def test_normalize_next_path_allows_only_local_paths():
    assert auth.normalize_next_path("/export") == "/export"
    assert auth.normalize_next_path("https://evil.example/") == "/"
    assert auth.normalize_next_path("//evil.example/path") == "/"
    assert auth.normalize_next_path("relative") == "/"
    assert auth.normalize_next_path("", default="/owner") == "/owner"


def test_owner_cookie_round_trip_and_tamper(monkeypatch):
    monkeypatch.setenv("PUPMATCH_SESSION_SECRET", "test-secret")
    raw = auth.encode_owner_value("abc123")

    assert auth.decode_owner_value(raw) is True
    assert auth.decode_owner_value(raw + "0") is False
    assert auth.decode_owner_value("abc123") is False
    assert auth.decode_owner_value(None) is False

    monkeypatch.setenv("PUPMATCH_SESSION_SECRET", "rotated")
    assert auth.decode_owner_value(raw) is False
