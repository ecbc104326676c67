from havendrip.config import Settings


def test_env_aliases(monkeypatch):
    monkeypatch.setenv("HAVENDRIP_REMOTE_TIMEOUT_SECONDS", "4.5")
    monkeypatch.setenv("FIREBASE_COLLECTION_PREFIX", "stg_")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://havendrip.in, http://localhost:3000")
    s = Settings()
    assert s.remote_timeout_seconds == 4.5
    assert s.collection("carts") == "stg_carts"
    assert s.origins == ["https://havendrip.in", "http://localhost:3000"]


def test_defaults_and_field_names(monkeypatch):
    monkeypatch.delenv("FIREBASE_COLLECTION_PREFIX", raising=False)
    monkeypatch.delenv("CURRENCY", raising=False)
    s = Settings(read_retry_deadline_seconds=5)
    assert s.read_retry_deadline_seconds == 5
    assert s.currency == "INR"
    assert s.collection("carts") == "carts"


def test_settings_config():
    assert Settings.model_config["env_file"] == ".env"
    assert Settings.model_config["extra"] == "ignore"
