import pytest

CREDENTIAL_ENV = ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "GEMINI_API_KEY")


@pytest.fixture(autouse=True)
def clear_credentials(monkeypatch, tmp_path):
    for key in CREDENTIAL_ENV:
        monkeypatch.delenv(key, raising=False)
    # keep a developer's .env out of the settings snapshots
    monkeypatch.chdir(tmp_path)
