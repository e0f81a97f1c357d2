import psycopg
import pytest

import pupmatch.healthcheck as healthcheck


def test_healthcheck_reports_dog_count(monkeypatch, capsys):
    monkeypatch.setattr(healthcheck, "list_dogs", lambda: [{"id": "a"}, {"id": "b"}])

    healthcheck.main()

    assert capsys.readouterr().out.strip() == "OK (2 dogs)"


def test_healthcheck_propagates_connection_errors(monkeypatch):
    def refuse():
        raise psycopg.OperationalError("connection refused")

    monkeypatch.setattr(healthcheck, "list_dogs", refuse)

    with pytest.raises(psycopg.OperationalError):
        healthcheck.main()
