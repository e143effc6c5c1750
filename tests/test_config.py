"""Tests for configuration loading."""

from canvas_board.config import CONFIG_ENV_VAR, CanvasConfig, load_config


class TestLoadConfig:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        config = load_config()
        assert config == CanvasConfig()
        assert config.border_width == 5
        assert config.toolbar_height == 20
        assert config.minimum_node_size == 100

    def test_yaml_overrides(self, tmp_path):
        path = tmp_path / "board.yaml"
        path.write_text("border_width: 8\ndetach_distance: 150\n")
        config = load_config(path)
        assert config.border_width == 8
        assert config.detach_distance == 150
        assert config.toolbar_height == 20

    def test_missing_file_falls_back(self, tmp_path):
        assert load_config(tmp_path / "nope.yaml") == CanvasConfig()

    def test_empty_file_falls_back(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == CanvasConfig()

    def test_env_var_path(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        path.write_text("minimum_node_size: 40\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_config().minimum_node_size == 40
