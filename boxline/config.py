"""
Configuration management for Boxline.

Channel tunables live in one dataclass that can be built in code or from
BOXLINE_* environment variables. Both peers must agree on the framing;
nothing is negotiated on the wire.
"""

import os
from dataclasses import dataclass, replace
from typing import Callable, Optional

from .errors import BoxlineError
from .protocol.frame import FRAME_OVERHEAD, FRAMINGS, FRAMING_LENGTH_PREFIXED, FRAMING_RAW

DEFAULT_READ_CHUNK_SIZE = 32 * 1024
DEFAULT_WRITE_CHUNK_SIZE = 1024
ENV_PREFIX = "BOXLINE_"


class ConfigError(BoxlineError):
    """Raised when configuration values are invalid."""
    pass


Observer = Callable[[str, dict], None]


@dataclass
class ChannelConfig:
    """
    Settings shared by dial, serve, and the channel pipelines.

    Fields:
        read_chunk_size: Upper bound on the plaintext of one received frame
        write_chunk_size: Plaintext bytes sealed into each outgoing frame
        framing: "length-prefixed" or "raw"
        connect_timeout: TCP connect timeout for dial, in seconds
        io_timeout: Socket deadline applied before the handshake, None blocks forever
        close_timeout: Time close() waits for queued frames to drain
        observer: Optional callable receiving (event, fields) notifications
    """
    read_chunk_size: int = DEFAULT_READ_CHUNK_SIZE
    write_chunk_size: int = DEFAULT_WRITE_CHUNK_SIZE
    framing: str = FRAMING_LENGTH_PREFIXED
    connect_timeout: Optional[float] = 10.0
    io_timeout: Optional[float] = None
    close_timeout: float = 1.0
    observer: Optional[Observer] = None

    def validate(self) -> 'ChannelConfig':
        """
        Check all values.

        Returns:
            self, for chaining

        Raises:
            ConfigError: If any value is out of range
        """
        if self.read_chunk_size <= 0:
            raise ConfigError("read_chunk_size must be positive")
        if self.write_chunk_size <= 0:
            raise ConfigError("write_chunk_size must be positive")
        if self.write_chunk_size > self.read_chunk_size:
            raise ConfigError("write_chunk_size cannot exceed read_chunk_size")
        if self.framing not in FRAMINGS:
            raise ConfigError(f"framing must be one of {', '.join(FRAMINGS)}")
        if self.framing == FRAMING_RAW and self.write_chunk_size + FRAME_OVERHEAD > self.read_chunk_size:
            # A raw frame must fit in one peer read
            raise ConfigError(
                f"raw framing needs write_chunk_size + {FRAME_OVERHEAD} <= read_chunk_size"
            )
        for name in ("connect_timeout", "io_timeout"):
            value = getattr(self, name)
            if value is not None and value <= 0:
                raise ConfigError(f"{name} must be positive or None")
        if self.close_timeout < 0:
            raise ConfigError("close_timeout cannot be negative")
        if self.observer is not None and not callable(self.observer):
            raise ConfigError("observer must be callable")
        return self

    def with_overrides(self, **changes) -> 'ChannelConfig':
        """Return a validated copy with the given fields replaced."""
        return replace(self, **changes).validate()

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> 'ChannelConfig':
        """
        Build a configuration from BOXLINE_* environment variables.

        Unset variables keep their defaults. An empty timeout value or
        "none" disables that timeout.

        Raises:
            ConfigError: If a variable cannot be parsed or is out of range
        """
        if environ is None:
            environ = os.environ

        values = {}
        for name, parse in (
            ("read_chunk_size", int),
            ("write_chunk_size", int),
            ("framing", str),
            ("connect_timeout", _optional_float),
            ("io_timeout", _optional_float),
            ("close_timeout", float),
        ):
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            try:
                values[name] = parse(raw.strip())
            except ValueError:
                raise ConfigError(f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}")

        return cls(**values).validate()


def _optional_float(raw: str) -> Optional[float]:
    if raw == "" or raw.lower() == "none":
        return None
    return float(raw)
