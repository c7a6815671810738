"""
Tests for channel configuration and the BOXLINE_* environment layer.
"""

import pytest

from boxline.config import (
    DEFAULT_READ_CHUNK_SIZE,
    DEFAULT_WRITE_CHUNK_SIZE,
    ChannelConfig,
    ConfigError,
)
from boxline.errors import BoxlineError
from boxline.protocol.frame import FRAMING_LENGTH_PREFIXED, FRAMING_RAW


class TestChannelConfig:

    def test_defaults(self):
        config = ChannelConfig().validate()

        assert config.read_chunk_size == DEFAULT_READ_CHUNK_SIZE == 32 * 1024
        assert config.write_chunk_size == DEFAULT_WRITE_CHUNK_SIZE == 1024
        assert config.framing == FRAMING_LENGTH_PREFIXED
        assert config.io_timeout is None
        assert config.observer is None

    @pytest.mark.parametrize("changes", [
        {"read_chunk_size": 0},
        {"write_chunk_size": -1},
        {"read_chunk_size": 512, "write_chunk_size": 1024},
        {"framing": "chunked"},
        {"framing": "raw", "read_chunk_size": 4096, "write_chunk_size": 4096},
        {"framing": "raw", "read_chunk_size": 4096, "write_chunk_size": 4057},
        {"connect_timeout": 0},
        {"io_timeout": -5.0},
        {"close_timeout": -1.0},
        {"observer": "not callable"},
    ])
    def test_invalid_values_rejected(self, changes):
        with pytest.raises(ConfigError):
            ChannelConfig(**changes).validate()

    def test_raw_framing_largest_write_chunk(self):
        """A full raw frame of write_chunk_size + 40 bytes fits one read."""
        config = ChannelConfig(framing=FRAMING_RAW, read_chunk_size=4096, write_chunk_size=4056)
        assert config.validate() is config

    def test_config_error_is_boxline_error(self):
        assert issubclass(ConfigError, BoxlineError)

    def test_with_overrides_copies(self):
        base = ChannelConfig()
        raw = base.with_overrides(framing=FRAMING_RAW)

        assert raw.framing == FRAMING_RAW
        assert base.framing == FRAMING_LENGTH_PREFIXED

    def test_with_overrides_validates(self):
        with pytest.raises(ConfigError):
            ChannelConfig().with_overrides(write_chunk_size=0)


class TestConfigFromEnv:

    def test_empty_environment_gives_defaults(self):
        assert ChannelConfig.from_env({}) == ChannelConfig()

    def test_values_parsed(self):
        config = ChannelConfig.from_env({
            "BOXLINE_READ_CHUNK_SIZE": "65536",
            "BOXLINE_WRITE_CHUNK_SIZE": " 4096 ",
            "BOXLINE_FRAMING": "raw",
            "BOXLINE_CONNECT_TIMEOUT": "2.5",
            "BOXLINE_IO_TIMEOUT": "30",
            "BOXLINE_CLOSE_TIMEOUT": "0",
        })

        assert config.read_chunk_size == 65536
        assert config.write_chunk_size == 4096
        assert config.framing == FRAMING_RAW
        assert config.connect_timeout == 2.5
        assert config.io_timeout == 30.0
        assert config.close_timeout == 0.0

    @pytest.mark.parametrize("raw", ["", "none", "None"])
    def test_timeout_disabled(self, raw):
        config = ChannelConfig.from_env({"BOXLINE_CONNECT_TIMEOUT": raw})
        assert config.connect_timeout is None

    @pytest.mark.parametrize("name, raw", [
        ("BOXLINE_READ_CHUNK_SIZE", "big"),
        ("BOXLINE_CLOSE_TIMEOUT", "none"),
        ("BOXLINE_IO_TIMEOUT", "soon"),
    ])
    def test_unparseable_value(self, name, raw):
        with pytest.raises(ConfigError) as exc_info:
            ChannelConfig.from_env({name: raw})
        assert name in str(exc_info.value)

    def test_out_of_range_value(self):
        with pytest.raises(ConfigError):
            ChannelConfig.from_env({"BOXLINE_FRAMING": "chunked"})

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("BOXLINE_WRITE_CHUNK_SIZE", "2048")
        assert ChannelConfig.from_env().write_chunk_size == 2048
