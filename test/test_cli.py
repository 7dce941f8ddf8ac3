"""Tests for the command line runner."""

import json

import pytest

from arize_log import cli
from arize_log.models import Response


@pytest.mark.parametrize(
    "text, expected",
    [("3", 3), ("-1", -1), ("0.5", 0.5), ("true", True), ("False", False), ("hotdog", "hotdog")],
)
def test_coerce_scalar(text, expected):
    """Test int, float, bool and string coercion of CLI values."""
    value = cli.coerce_scalar(text)
    assert value == expected
    assert type(value) is type(expected)  # pylint: disable=unidiomatic-typecheck


def test_parse_pairs_rejects_missing_separator():
    """Test that key=value pairs are required."""
    with pytest.raises(ValueError):
        cli.parse_pairs(["novalue"], "--feature")


def test_dry_run_prints_record(capsys):
    """Test that --dry-run prints the encoded record and sends nothing."""
    rc = cli.main(
        [
            "--model-id", "mk",
            "--prediction-id", "xyz",
            "--space-key", "space",
            "--prediction", "0.65",
            "--actual", "1",
            "--feature", "x=1",
            "--feature", "y=y1",
            "--tag", "t=true",
            "--shap", "s=1.76",
            "--timestamp", "1700000000",
            "--dry-run",
        ]
    )
    assert rc == 0
    body = json.loads(capsys.readouterr().out)
    assert body["modelId"] == "mk"
    assert body["prediction"]["label"] == {"numeric": 0.65}
    assert body["actual"]["label"] == {"numeric": 1.0}
    assert body["prediction"]["features"] == {"x": {"int": "1"}, "y": {"string": "y1"}}
    assert body["prediction"]["tags"] == {"t": {"string": "true"}}
    assert body["prediction"]["timestamp"] == "2023-11-14T22:13:20Z"
    assert body["featureImportances"]["featureImportances"] == {"s": 1.76}


def test_invalid_record_exit_code():
    """Test that a label mismatch exits with code 2."""
    rc = cli.main(
        ["--model-id", "mk", "--prediction-id", "xyz", "--prediction", "1", "--actual", "cat",
         "--dry-run"]
    )
    assert rc == 2


def test_oversized_number_exit_code():
    """Test that a number too large for a double exits with code 2."""
    rc = cli.main(
        ["--model-id", "mk", "--prediction-id", "xyz", "--prediction", "1" + "0" * 400,
         "--dry-run"]
    )
    assert rc == 2


def test_missing_credentials_exit_code(monkeypatch):
    """Test that sending without keys exits with code 2."""
    monkeypatch.setattr(cli, "new_client", lambda *a, **k: pytest.fail("should not send"))
    rc = cli.main(["--model-id", "mk", "--prediction-id", "xyz", "--api-key", ""])
    assert rc == 2


class _FakeClient:
    """Stand-in for Client used as a context manager."""

    def __init__(self, response):
        self.response = response
        self.records = []

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return None

    def send(self, record):
        """Capture the record and return the canned response."""
        self.records.append(record)
        return self.response


@pytest.mark.parametrize("status, expected_rc", [(200, 0), (500, 1)])
def test_send_exit_codes(monkeypatch, capsys, status, expected_rc):
    """Test that the exit code follows the response status."""
    fake = _FakeClient(Response(status_code=status, body="done"))
    calls = {}

    def fake_new_client(space_key, api_key, config=None):
        calls["args"] = (space_key, api_key, config.host)
        return fake

    monkeypatch.setattr(cli, "new_client", fake_new_client)
    rc = cli.main(
        [
            "--model-id", "mk",
            "--prediction-id", "xyz",
            "--prediction", "cat",
            "--space-key", "space",
            "--api-key", "key",
            "--host", "https://example.test",
        ]
    )
    assert rc == expected_rc
    assert calls["args"] == ("space", "key", "https://example.test")
    assert fake.records[0].prediction.label.category == "cat"
    assert "done" in capsys.readouterr().out
