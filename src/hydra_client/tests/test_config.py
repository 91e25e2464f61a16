import pytest

from ..config import Configurator


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for key in [
        "HYDRA_CLIENT_SETTINGS",
        "BASE_URL",
        "API_PREFIX",
        "TIMEOUT",
        "AUTO_WARM_UP",
        "EXECUTION_CACHE",
        "MAX_PAGES",
        "DEFAULT_HEADERS",
        "USER_AGENT",
    ]:
        monkeypatch.delenv(key, raising=False)


def test_defaults():
    config = Configurator()
    assert config.BASE_URL == "http://localhost:8000"
    assert config.API_PREFIX == "/api"
    assert config.AUTO_WARM_UP is True
    assert config.max_pages is None
    assert config.DEFAULT_HEADERS["Accept"] == "application/ld+json"


def test_local_settings(tmp_path, monkeypatch):
    settings = tmp_path / "custom.toml"
    settings.write_text('BASE_URL = "api.example.com"\nMAX_PAGES = 10\n')
    monkeypatch.setenv("HYDRA_CLIENT_SETTINGS", str(settings))
    config = Configurator()
    assert config.BASE_URL == "http://api.example.com"
    assert config.max_pages == 10


def test_cwd_settings(tmp_path):
    (tmp_path / "hydra_client.toml").write_text('API_PREFIX = "v1"\n')
    assert Configurator().API_PREFIX == "/v1"


def test_environment(monkeypatch):
    monkeypatch.setenv("TIMEOUT", "2.5")
    monkeypatch.setenv("AUTO_WARM_UP", "no")
    monkeypatch.setenv("MAX_PAGES", "4")
    monkeypatch.setenv("DEFAULT_HEADERS", '{"Accept": "application/json"}')
    config = Configurator()
    assert config.TIMEOUT == 2.5
    assert config.AUTO_WARM_UP is False
    assert config.MAX_PAGES == 4
    assert config.DEFAULT_HEADERS == {"Accept": "application/json"}


def test_override():
    config = Configurator(MAX_PAGES=2)
    assert config.max_pages == 2
    config.override(MAX_PAGES=0)
    assert config.max_pages is None
    with pytest.raises(ValueError):
        config.override(MAX_PAGES=-1)
