"""
Tests for configuration loading and management.
"""

from pathlib import Path


class TestConfig:
    """Tests for Config dataclass."""

    def test_config_defaults(self):
        """Test default config values."""
        from ffbatch.config import DEFAULT_PROGRESS_DIR, Config

        cfg = Config()

        assert cfg.src_dir is None
        assert cfg.dst_dir is None
        assert cfg.ffmpeg_args is None
        assert cfg.file_ext is None
        assert cfg.hwaccel is True
        assert cfg.progress_dir == DEFAULT_PROGRESS_DIR
        assert cfg.bar_width == 40
        assert cfg.poll_interval == 0.3
        assert cfg.debug is False
        assert cfg.dryrun is False

    def test_apply_defaults_fills_only_missing(self):
        """Test apply_defaults keeps explicit values."""
        from ffbatch.config import DEFAULT_DST_DIR, DEFAULT_FFMPEG_ARGS, DEFAULT_SRC_DIR, Config

        cfg = Config(file_ext="mkv")
        cfg.apply_defaults()

        assert cfg.src_dir == DEFAULT_SRC_DIR
        assert cfg.dst_dir == DEFAULT_DST_DIR
        assert cfg.ffmpeg_args == DEFAULT_FFMPEG_ARGS
        assert cfg.file_ext == "mkv"

    def test_config_for_library(self):
        """Test Config.for_library() factory."""
        from ffbatch.config import Config

        config = Config.for_library(src_dir="in", dst_dir="out")

        assert config.src_dir == "in"
        assert config.dst_dir == "out"
        assert config.progress is False
        assert config.color is False
        assert config.prompt is False
        assert config.file_ext == "mp4"

    def test_config_apply_script_mode(self, monkeypatch):
        """Test Config.apply_script_mode() with NO_COLOR."""
        from ffbatch.config import Config

        monkeypatch.setenv("NO_COLOR", "1")

        config = Config()
        config.apply_script_mode()

        assert config.progress is False
        assert config.color is False
        assert config.prompt is True


class TestScriptModeDetection:
    """Tests for script mode detection."""

    def test_is_script_mode_with_no_color_env(self, monkeypatch):
        from ffbatch.config import is_script_mode

        monkeypatch.setenv("NO_COLOR", "1")
        assert is_script_mode() is True

    def test_is_script_mode_with_script_mode_env(self, monkeypatch):
        from ffbatch.config import is_script_mode

        monkeypatch.setenv("FFBATCH_SCRIPT_MODE", "1")
        assert is_script_mode() is True


class TestXDGDirectories:
    """Tests for XDG directory functions."""

    def test_get_xdg_config_home_default(self, monkeypatch):
        """Test default config home."""
        from ffbatch.config import get_xdg_config_home

        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        assert get_xdg_config_home() == Path.home() / ".config"

    def test_get_xdg_config_home_custom(self, monkeypatch, temp_dir):
        """Test custom config home."""
        from ffbatch.config import get_xdg_config_home

        monkeypatch.setenv("XDG_CONFIG_HOME", str(temp_dir))
        assert get_xdg_config_home() == temp_dir

    def test_get_xdg_state_home_default(self, monkeypatch):
        """Test default state home."""
        from ffbatch.config import get_xdg_state_home

        monkeypatch.delenv("XDG_STATE_HOME", raising=False)
        assert get_xdg_state_home() == Path.home() / ".local" / "state"

    def test_get_app_dirs(self, mock_xdg_dirs, temp_dir):
        """Test app directories creation."""
        from ffbatch.config import get_app_dirs

        dirs = get_app_dirs()

        assert set(dirs) == {"config", "state", "logs"}
        assert dirs["config"] == temp_dir / "config" / "ffbatch"
        for d in dirs.values():
            assert d.exists()


class TestConfigFileLoading:
    """Tests for configuration file loading."""

    def test_load_config_file_empty(self, temp_config_dir, temp_dir):
        """Test loading from empty directory."""
        from ffbatch.config import load_config_file

        config = load_config_file(temp_config_dir, system_dir=temp_dir / "missing")
        assert config == {}

    def test_load_config_file_ini(self, temp_config_dir, temp_dir):
        """Test loading INI config."""
        from ffbatch.config import load_config_file

        ini_content = """
[paths]
src_dir = videos
dst_dir = converted

[encoding]
args = -c:v libx265 -vf scale=1280:-2,fps=30
hwaccel = no

[ui]
poll_interval = 0.5
"""
        (temp_config_dir / "config.ini").write_text(ini_content)

        config = load_config_file(temp_config_dir, system_dir=temp_dir / "missing")

        assert config["paths"]["src_dir"] == "videos"
        assert config["encoding"]["args"] == "-c:v libx265 -vf scale=1280:-2,fps=30"
        assert config["encoding"]["hwaccel"] is False
        assert config["ui"]["poll_interval"] == 0.5

    def test_load_config_file_toml(self, temp_config_dir, temp_dir):
        """Test loading TOML config when TOML support is available."""
        import pytest

        from ffbatch.config import TOML_AVAILABLE, load_config_file

        if not TOML_AVAILABLE:
            pytest.skip("TOML support not available")

        (temp_config_dir / "config.toml").write_text('[encoding]\nfile_ext = "mkv"\n')
        config = load_config_file(temp_config_dir, system_dir=temp_dir / "missing")
        assert config == {"encoding": {"file_ext": "mkv"}}

    def test_system_config_is_overridden_by_user(self, temp_dir):
        """Test user config wins over system config."""
        from ffbatch.config import load_config_file

        system_dir = temp_dir / "etc"
        user_dir = temp_dir / "user"
        system_dir.mkdir()
        user_dir.mkdir()
        (system_dir / "config.ini").write_text("[paths]\nsrc_dir = a\ndst_dir = b\n")
        (user_dir / "config.ini").write_text("[paths]\nsrc_dir = c\n")

        config = load_config_file(user_dir, system_dir=system_dir)

        assert config["paths"] == {"src_dir": "c", "dst_dir": "b"}

    def test_apply_config_to_args(self):
        """Test applying file config to Config instance."""
        from ffbatch.config import Config, apply_config_to_args

        file_config = {
            "paths": {"src_dir": "videos", "dst_dir": "out"},
            "encoding": {"file_ext": "mkv", "hwaccel": False},
        }

        cfg = Config()
        apply_config_to_args(file_config, cfg)

        assert cfg.src_dir == "videos"
        assert cfg.dst_dir == "out"
        assert cfg.file_ext == "mkv"
        assert cfg.hwaccel is False

    def test_apply_config_keeps_cli_values(self):
        """Test CLI-set values are not replaced by config file values."""
        from ffbatch.config import Config, apply_config_to_args

        cfg = Config(src_dir="from-cli")
        apply_config_to_args({"paths": {"src_dir": "from-file"}}, cfg)

        assert cfg.src_dir == "from-cli"

    def test_numeric_looking_paths_stay_text(self, temp_config_dir, temp_dir):
        """Test a directory named 2024 is read as a path, not a number."""
        from ffbatch.config import Config, apply_config_to_args, load_config_file

        (temp_config_dir / "config.ini").write_text("[paths]\nsrc_dir = 2024\n\n[encoding]\nfile_ext = 3.5\n")

        config = load_config_file(temp_config_dir, system_dir=temp_dir / "missing")
        assert config["paths"]["src_dir"] == "2024"
        assert config["encoding"]["file_ext"] == "3.5"

        cfg = Config()
        apply_config_to_args(config, cfg)
        assert Path(cfg.src_dir) == Path("2024")

    def test_apply_config_converts_toml_numbers_for_paths(self):
        from ffbatch.config import Config, apply_config_to_args

        cfg = Config()
        apply_config_to_args({"paths": {"dst_dir": 2025}}, cfg)

        assert cfg.dst_dir == "2025"


class TestParseIniValue:
    """Tests for INI value parsing."""

    def test_parse_bool(self):
        from ffbatch.config import _parse_ini_value

        assert _parse_ini_value("true") is True
        assert _parse_ini_value("YES") is True
        assert _parse_ini_value("off") is False

    def test_parse_numbers(self):
        from ffbatch.config import _parse_ini_value

        assert _parse_ini_value("42") == 42
        assert _parse_ini_value("0.3") == 0.3

    def test_parse_string_with_commas(self):
        """Commas stay inside the string (ffmpeg filter chains use them)."""
        from ffbatch.config import _parse_ini_value

        assert _parse_ini_value("scale=640:-2,fps=24") == "scale=640:-2,fps=24"
