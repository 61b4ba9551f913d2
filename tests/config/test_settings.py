import os

import pytest

from pagetree_toolkit.config import ConfigManager, GatewaySettings, PageTreeSettings, load_settings


def test_packaged_defaults_loaded():
    cfg = ConfigManager().get_page_tree_config()
    assert cfg["max_depth"] == 2
    assert cfg["nest_edge_fraction"] == 0.25
    assert ConfigManager().get_gateway_config()["token_env"] == "PAGETREE_API_TOKEN"
    assert ConfigManager().get_logging_config()["version"] == 1


def test_config_manager_is_singleton():
    assert ConfigManager() is ConfigManager()


def test_user_config_files_created():
    ConfigManager()
    user_dir = os.environ["PAGETREE_CONFIG_DIR"]
    assert sorted(os.listdir(user_dir)) == ["logging.yml", "page_tree.yml"]


def test_user_overrides_merge(tmp_path):
    user_dir = tmp_path / "config"
    user_dir.mkdir(parents=True, exist_ok=True)
    (user_dir / "page_tree.yml").write_text("max_depth: 3\n", encoding="utf-8")
    settings = load_settings()
    assert settings.max_depth == 3
    assert settings.nest_edge_fraction == 0.25


def test_invalid_user_yaml_is_ignored(tmp_path):
    user_dir = tmp_path / "config"
    user_dir.mkdir(parents=True, exist_ok=True)
    (user_dir / "page_tree.yml").write_text("max_depth: [unclosed\n", encoding="utf-8")
    assert load_settings().max_depth == 2


def test_invalid_values_fall_back_to_defaults(tmp_path):
    user_dir = tmp_path / "config"
    user_dir.mkdir(parents=True, exist_ok=True)
    (user_dir / "page_tree.yml").write_text("nest_edge_fraction: 0.6\n", encoding="utf-8")
    assert load_settings() == PageTreeSettings()


def test_from_config_parses_gateway():
    settings = PageTreeSettings.from_config({
        "max_depth": "4",
        "gateway": {"base_url": "https://kb.example.com/", "timeout_seconds": 2},
    })
    assert settings.max_depth == 4
    assert settings.gateway.base_url == "https://kb.example.com"
    assert settings.gateway.timeout_seconds == 2.0
    assert settings.gateway.enabled
    assert not PageTreeSettings.from_config(None).gateway.enabled


@pytest.mark.parametrize("kwargs", [{"max_depth": -1}, {"nest_edge_fraction": 0.5}, {"nest_edge_fraction": 0}])
def test_settings_validation(kwargs):
    with pytest.raises(ValueError):
        PageTreeSettings(**kwargs)


def test_gateway_token_from_env(monkeypatch):
    gw = GatewaySettings(base_url="https://x", token_env="KB_TOKEN")
    monkeypatch.delenv("KB_TOKEN", raising=False)
    assert gw.resolve_token() is None
    monkeypatch.setenv("KB_TOKEN", "  t0k  ")
    assert gw.resolve_token() == "t0k"
