from pathlib import Path

from app.config import Settings

ROOT = Path(__file__).resolve().parents[1]
ENV_EXAMPLE = ROOT / ".env.example"


def _example_vars():
    names = set()
    for line in ENV_EXAMPLE.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#") and "=" in line:
            names.add(line.split("=", 1)[0].strip())
    return names


def test_env_example_loads():
    loaded = Settings(_env_file=ENV_EXAMPLE)

    assert loaded.cors_origins == ["http://localhost:3000"]
    assert loaded.plan_grace_periods == {"enterprise": 14, "business": 10}
    assert loaded.subscription_check_cron == "0 9 * * *"


def test_cors_origins_accepts_comma_separated_env(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:3000, https://app.example.com")

    loaded = Settings(_env_file=None)

    assert loaded.cors_origins == ["http://localhost:3000", "https://app.example.com"]


def test_env_example_covers_every_setting():
    aliases = {field.alias for field in Settings.model_fields.values() if field.alias}
    assert aliases - _example_vars() == set()
