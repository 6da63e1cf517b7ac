"""Required configuration fails fast."""

import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from timely.core.config import REQUIRED_FIELDS, AppSettings

VALID = {
    "SUPABASE_ENDPOINT": "https://db.example.com/rest/v1",
    "SUPABASE_KEY": "test-key",
    "TIMELY_TOKEN_SECRET": "test-secret",
}


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for name in REQUIRED_FIELDS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the picture.
    monkeypatch.chdir(tmp_path)


def test_values_are_trimmed():
    settings = AppSettings(**{**VALID, "SUPABASE_KEY": "  padded-key \n"})
    assert settings.SUPABASE_KEY == "padded-key"
    assert settings.TOKEN_TTL_DAYS == 30
    assert settings.COOKIE_SECURE is True


@pytest.mark.parametrize("missing", REQUIRED_FIELDS)
def test_missing_required_value_fails(missing):
    values = {k: v for k, v in VALID.items() if k != missing}
    with pytest.raises(ValidationError):
        AppSettings(**values)


@pytest.mark.parametrize("blank", REQUIRED_FIELDS)
def test_blank_required_value_fails(blank):
    with pytest.raises(ValidationError, match=f"Missing required env var {blank}"):
        AppSettings(**{**VALID, blank: "   "})


def test_reads_environment(monkeypatch):
    for name, value in VALID.items():
        monkeypatch.setenv(name, value)
    settings = AppSettings()
    assert settings.SUPABASE_ENDPOINT == VALID["SUPABASE_ENDPOINT"]
    assert settings.templates_dir.name == "templates"
