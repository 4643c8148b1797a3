import pytest

from dramagate.infrastructure.config import settings as config


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """Points configuration loading at an empty temp directory."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config, "_config", {})
    # Marked loaded so load_gateway_settings never reads the real ~/.dramagate/config.yaml
    monkeypatch.setattr(config, "_loaded", True)
    for key in config.DEFAULTS:
        monkeypatch.delenv(config.env_var_name(key), raising=False)
    return tmp_path


def test_defaults_apply_without_any_source(isolated_config):
    config.load_configuration(config_file=isolated_config / "missing.yaml", force=True)

    assert config.get_config("retry.max_retries") == 2
    assert config.get_config("credentials.ttl_seconds") == 1800
    assert config.get_config("unknown.key", default="x") == "x"


def test_yaml_is_flattened_into_dotted_keys(isolated_config):
    yaml_file = isolated_config / "config.yaml"
    yaml_file.write_text("retry:\n  max_retries: 4\nupstream:\n  language: en\n")

    config.load_configuration(config_file=yaml_file, force=True)

    assert config.get_config("retry.max_retries") == 4
    assert config.get_config("upstream.language") == "en"


def test_environment_overrides_yaml(isolated_config, monkeypatch):
    yaml_file = isolated_config / "config.yaml"
    yaml_file.write_text("retry:\n  backoff_seconds: 3.0\n")
    monkeypatch.setenv("DRAMAGATE_RETRY_BACKOFF_SECONDS", "0.5")

    config.load_configuration(config_file=yaml_file, force=True)

    assert config.get_config("retry.backoff_seconds") == 0.5


def test_dotenv_file_is_loaded(isolated_config, monkeypatch):
    # Recorded as unset so teardown removes what load_dotenv adds
    monkeypatch.setenv("DRAMAGATE_CATALOG_PAGE_SIZE", "unset")
    monkeypatch.delenv("DRAMAGATE_CATALOG_PAGE_SIZE")
    (isolated_config / ".env").write_text("DRAMAGATE_CATALOG_PAGE_SIZE=30\n")

    config.load_configuration(config_file=isolated_config / "missing.yaml", force=True)

    assert config.get_config("catalog.page_size") == 30


def test_test_and_runtime_overrides_take_priority(isolated_config, monkeypatch):
    monkeypatch.setenv("DRAMAGATE_LOGGING_LEVEL", "WARNING")
    config.set_config("logging.level", "DEBUG")
    assert config.get_config("logging.level") == "DEBUG"

    config.set_config_for_testing({"logging.level": "ERROR"})
    assert config.get_config("logging.level") == "ERROR"

    config.clear_test_config()
    assert config.get_config("logging.level") == "WARNING"


def test_load_gateway_settings(isolated_config):
    config.set_config_for_testing({"upstream.base_url": "https://upstream.test/", "retry.max_retries": "3"})

    settings = config.load_gateway_settings()

    assert settings.upstream_base_url == "https://upstream.test"
    assert settings.max_retries == 3
    assert settings.credential_ttl_ms == 1_800_000
    assert settings.batch_timeout_ms == 20_000


def test_negative_retries_rejected(isolated_config):
    config.set_config_for_testing({"retry.max_retries": -1})

    with pytest.raises(ValueError):
        config.load_gateway_settings()


@pytest.mark.parametrize("raw, expected", [
    ("true", True), ("False", False), ("null", None), ("7", 7), ("1.5", 1.5), ("+0800", "+0800"), ("007", "007"), ("in", "in"),
])
def test_coerce(raw, expected):
    assert config._coerce(raw) == expected
