"""Configuration loading: defaults, environment, YAML file and overrides."""
import pytest

from app.lib.config import ConfigSingleton


@pytest.fixture(autouse=True)
def fresh_config():
    ConfigSingleton.reset()
    yield
    ConfigSingleton.reset()


async def test_defaults(tmp_path):
    config = await ConfigSingleton.initialize(config_file=str(tmp_path / "missing.yaml"))
    assert config["default_page_size"] == 20
    assert config["mongo_tls"] is False
    assert "/healthz" in config["excluded_paths"]
    assert config["shutdown_timeout"] == 5.0


async def test_environment_and_file_layers(tmp_path, monkeypatch):
    monkeypatch.setenv("MAX_PAGE_SIZE", "40")
    monkeypatch.setenv("MONGO_TLS", "true")
    monkeypatch.setenv("SHUTDOWN_TIMEOUT", "2.5")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example, https://b.example")
    config_file = tmp_path / "notifications.yaml"
    config_file.write_text("mongo_db_name: from_file\ndefault_page_size: 60\n")

    config = await ConfigSingleton.initialize(config_file=str(config_file))

    assert config["max_page_size"] == 40
    assert config["mongo_tls"] is True
    assert config["shutdown_timeout"] == 2.5
    assert config["allowed_origins"] == ["https://a.example", "https://b.example"]
    assert config["mongo_db_name"] == "from_file"
    # The default page never exceeds the cap
    assert config["default_page_size"] == 40


async def test_overrides_win_and_get_config(tmp_path):
    await ConfigSingleton.initialize(
        config_file=str(tmp_path / "missing.yaml"),
        overrides={"mongo_db_name": "override"},
    )
    assert ConfigSingleton.get_config("mongo_db_name") == "override"
    assert ConfigSingleton.get_config("nothing.here") is None


def test_get_config_before_initialize():
    with pytest.raises(RuntimeError):
        ConfigSingleton.get_config()
