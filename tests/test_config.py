"""
Tests for configuration loading and command-line overrides.
"""

from pathlib import Path

import pytest

from melodex.__main__ import build_config, parse_args
from melodex.config import DEFAULT_CONFIG_PATH, MelodexConfig, load_config
from melodex.core import ConfigError


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "melodex.toml"
    path.write_text(text)
    return path


class TestLoadConfig:
    """Tests for load_config()."""

    def test_packaged_defaults(self) -> None:
        """The packaged file matches the dataclass defaults."""
        assert DEFAULT_CONFIG_PATH.exists()
        assert load_config() == MelodexConfig()

    def test_default_values(self) -> None:
        """Spot-check the shipped defaults."""
        config = load_config()
        assert config.catalog.base_url == "https://api.deezer.com"
        assert config.search.popular_limit == 5
        assert config.search.poll_interval_ms == 20000
        assert config.search.discard_stale_responses is False
        assert config.storage.profile_key == "userDetails"
        assert config.web.port == 9000

    def test_user_file_overrides(self, tmp_path: Path) -> None:
        """A user file only changes the keys it sets."""
        path = write_config(
            tmp_path,
            """
[search]
poll_interval_ms = 5000
discard_stale_responses = true

[web]
port = 8080
""",
        )

        config = load_config(path)

        assert config.search.poll_interval_ms == 5000
        assert config.search.discard_stale_responses is True
        assert config.search.popular_limit == 5
        assert config.web.port == 8080
        assert config.web.host == "0.0.0.0"

    def test_int_accepted_for_float(self, tmp_path: Path) -> None:
        """Integer timeouts are widened to float."""
        path = write_config(tmp_path, "[catalog]\ntimeout_seconds = 10\n")
        config = load_config(path)
        assert config.catalog.timeout_seconds == 10.0
        assert isinstance(config.catalog.timeout_seconds, float)

    def test_unknown_keys_ignored(self, tmp_path: Path) -> None:
        """Unknown keys are skipped."""
        path = write_config(tmp_path, "[web]\ncolour = 'blue'\n")
        assert load_config(path).web == MelodexConfig().web

    @pytest.mark.parametrize(
        "text",
        [
            "[web]\nport = 'eighty'\n",
            "[search]\ndiscard_stale_responses = 1\n",
            "[search]\npoll_interval_ms = true\n",
            "web = 5\n",
        ],
    )
    def test_wrong_types(self, tmp_path: Path, text: str) -> None:
        """Values of the wrong type raise ConfigError."""
        with pytest.raises(ConfigError):
            load_config(write_config(tmp_path, text))

    def test_non_positive_interval(self, tmp_path: Path) -> None:
        """The polling interval must be positive."""
        with pytest.raises(ConfigError):
            load_config(write_config(tmp_path, "[search]\npoll_interval_ms = 0\n"))

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Broken TOML raises ConfigError."""
        with pytest.raises(ConfigError):
            load_config(write_config(tmp_path, "[search\n"))

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing user file raises ConfigError."""
        with pytest.raises(ConfigError):
            load_config(tmp_path / "nope.toml")


class TestCommandLine:
    """Tests for argument parsing and overrides."""

    def test_no_arguments(self) -> None:
        """Without flags the defaults apply."""
        config = build_config(parse_args([]))
        assert config == MelodexConfig()

    def test_overrides(self, tmp_path: Path) -> None:
        """Flags take precedence over the config file."""
        path = write_config(tmp_path, "[web]\nport = 8080\n")
        args = parse_args(
            [
                "--config",
                str(path),
                "--web-port",
                "9100",
                "--host",
                "127.0.0.1",
                "--storage",
                str(tmp_path / "store.json"),
                "--poll-interval",
                "1500",
            ]
        )

        config = build_config(args)

        assert config.web.port == 9100
        assert config.web.host == "127.0.0.1"
        assert config.storage.path == str(tmp_path / "store.json")
        assert config.search.poll_interval_ms == 1500

    def test_bad_poll_interval(self) -> None:
        """A non-positive interval flag is a config error."""
        with pytest.raises(ConfigError):
            build_config(parse_args(["--poll-interval", "0"]))
