"""Tests for the gridtiles.config module."""

from gridtiles import config


class TestSettings:
    """Tests for the Dynaconf settings object."""

    def test_settings_files_layered(self):
        """Global, user and working directory files, lowest priority first."""
        names = [(path.parent, path.name) for path in config.settings_files[:6]]
        assert names == [
            (config.GLOB_DIR, "settings.toml"), (config.GLOB_DIR, ".secrets.toml"),
            (config.USER_DIR, "settings.toml"), (config.USER_DIR, ".secrets.toml"),
            (config.CURR_DIR, "settings.toml"), (config.CURR_DIR, ".secrets.toml"),
        ]

    def test_environment_variable_prefix(self, monkeypatch):
        monkeypatch.setenv("GRIDTILES_TILE_SIZE", "128")
        try:
            config.settings.reload()
            assert config.settings.get("tile_size") == 128
        finally:
            monkeypatch.delenv("GRIDTILES_TILE_SIZE")
            config.settings.reload()
        assert config.settings.get("tile_size", 256) != 128
