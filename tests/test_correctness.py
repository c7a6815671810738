"""
Correctness Tests for Boxline.

Tests frame round-trips, corruption detection, and wire framing.
"""

import struct

import pytest

from boxline.crypto.box import SharedSecret, TAG_SIZE
from boxline.crypto.keys import KeyPair
from boxline.crypto.nonce import NONCE_SIZE, random_nonce
from boxline.errors import (
    AuthenticationFailed,
    EndOfStream,
    FrameFormatError,
    ShortWrite,
    TransportError,
)
from boxline.protocol.frame import (
    FRAMING_LENGTH_PREFIXED,
    FRAMING_RAW,
    Frame,
    FrameReader,
    FrameWriter,
    decode_frame,
    encode_frame,
)

from conftest import MemoryStream


class TestRoundTrip:
    """Test round-trip sealing and opening."""

    @pytest.mark.parametrize("plaintext", [
        b"",
        b"x",
        b"Hello, Boxline!",
        "Hello, 世界! 🌍🔐".encode('utf-8'),
        bytes(range(256)) * 4,
        b"X" * (32 * 1024),
    ])
    def test_roundtrip(self, secret_pair, plaintext):
        """Opening a sealed frame with the peer's secret recovers the message."""
        sender, receiver = secret_pair
        nonce = random_nonce()

        frame = encode_frame(sender, plaintext, nonce)
        assert decode_frame(receiver, frame.to_bytes()) == plaintext

    def test_frame_layout(self, secret_pair):
        """Frame is nonce followed by ciphertext with a 16-byte tag."""
        sender, _ = secret_pair
        nonce = random_nonce()
        plaintext = b"layout check"

        frame = encode_frame(sender, plaintext, nonce)
        data = frame.to_bytes()

        assert data[:NONCE_SIZE] == nonce
        assert len(data) == NONCE_SIZE + len(plaintext) + TAG_SIZE
        assert frame.size == len(data) == len(frame)

    def test_fresh_nonce_when_omitted(self, secret_pair):
        """Sealing the same message twice yields different frames."""
        sender, receiver = secret_pair

        first = encode_frame(sender, b"same message")
        second = encode_frame(sender, b"same message")

        assert first.nonce != second.nonce
        assert first.ciphertext != second.ciphertext
        assert decode_frame(receiver, first.to_bytes()) == b"same message"
        assert decode_frame(receiver, second.to_bytes()) == b"same message"

    def test_multiple_messages(self, secret_pair):
        """Frames open independently in order."""
        sender, receiver = secret_pair
        messages = [b"First message", b"Second message with more content", b"", b"Final"]

        frames = [encode_frame(sender, m).to_bytes() for m in messages]

        assert [decode_frame(receiver, f) for f in frames] == messages

    def test_frame_from_bytes(self):
        """Frame.from_bytes splits nonce and ciphertext."""
        nonce = b"n" * NONCE_SIZE
        ciphertext = b"c" * (TAG_SIZE + 3)

        frame = Frame.from_bytes(nonce + ciphertext)

        assert frame.nonce == nonce
        assert frame.ciphertext == ciphertext

    def test_frame_rejects_bad_nonce(self):
        with pytest.raises(ValueError):
            Frame(nonce=b"short", ciphertext=b"")


class TestCorruptionDetection:
    """Test detection of frame corruption and tampering."""

    def test_every_bit_flip_detected(self, secret_pair):
        """Flipping any single bit in nonce or ciphertext fails authentication."""
        sender, receiver = secret_pair
        data = encode_frame(sender, b"tamper target").to_bytes()

        for byte_index in range(len(data)):
            for bit in range(8):
                corrupted = bytearray(data)
                corrupted[byte_index] ^= 1 << bit
                with pytest.raises(AuthenticationFailed):
                    decode_frame(receiver, bytes(corrupted))

    def test_truncated_frame(self, secret_pair):
        """A frame missing its last byte fails authentication."""
        sender, receiver = secret_pair
        data = encode_frame(sender, b"truncate me").to_bytes()

        with pytest.raises(AuthenticationFailed):
            decode_frame(receiver, data[:-1])

    def test_frame_shorter_than_overhead(self, secret_pair):
        """Data too short for nonce and tag is rejected."""
        _, receiver = secret_pair

        with pytest.raises(AuthenticationFailed):
            decode_frame(receiver, b"\x00" * (NONCE_SIZE + TAG_SIZE - 1))

    def test_wrong_secret(self, secret_pair):
        """A frame sealed for another key pair does not open."""
        sender, _ = secret_pair
        outsider = KeyPair.generate()
        other = SharedSecret.precompute(outsider.private_key, KeyPair.generate().public_key)

        data = encode_frame(sender, b"not for you").to_bytes()

        with pytest.raises(AuthenticationFailed):
            decode_frame(other, data)

    def test_appended_bytes(self, secret_pair):
        """Trailing garbage after a frame fails authentication."""
        sender, receiver = secret_pair
        data = encode_frame(sender, b"exact").to_bytes()

        with pytest.raises(AuthenticationFailed):
            decode_frame(receiver, data + b"\x00")


class TestFraming:
    """Test frame boundaries on the wire."""

    def test_length_prefixed_survives_coalescing(self, secret_pair):
        """Several frames delivered in one buffer are split correctly."""
        sender, receiver = secret_pair
        wire = MemoryStream()
        writer = FrameWriter(wire, FRAMING_LENGTH_PREFIXED)
        messages = [b"one", b"two" * 100, b"three"]

        for message in messages:
            writer.write_frame(encode_frame(sender, message))

        reader = FrameReader(MemoryStream(bytes(wire.written)), FRAMING_LENGTH_PREFIXED)
        assert [decode_frame(receiver, reader.read_frame()) for _ in messages] == messages

        with pytest.raises(EndOfStream):
            reader.read_frame()

    def test_length_prefixed_survives_splitting(self, secret_pair):
        """A frame arriving a few bytes at a time is reassembled."""
        sender, receiver = secret_pair
        wire = MemoryStream()
        FrameWriter(wire).write_frame(encode_frame(sender, b"split across reads"))

        reader = FrameReader(MemoryStream(bytes(wire.written), max_read=3))

        assert decode_frame(receiver, reader.read_frame()) == b"split across reads"

    def test_length_prefix_value(self, secret_pair):
        sender, _ = secret_pair
        wire = MemoryStream()
        frame = encode_frame(sender, b"12345")

        written = FrameWriter(wire).write_frame(frame)

        (length,) = struct.unpack('!I', bytes(wire.written[:4]))
        assert length == frame.size
        assert written == 4 + frame.size

    def test_raw_framing_one_read_one_frame(self, secret_pair):
        """Raw framing writes no prefix and reads one frame per read."""
        sender, receiver = secret_pair
        wire = MemoryStream()
        frame = encode_frame(sender, b"raw frame")

        FrameWriter(wire, FRAMING_RAW).write_frame(frame)
        assert bytes(wire.written) == frame.to_bytes()

        reader = FrameReader(MemoryStream(bytes(wire.written)), FRAMING_RAW)
        assert decode_frame(receiver, reader.read_frame()) == b"raw frame"

        with pytest.raises(EndOfStream):
            reader.read_frame()

    @pytest.mark.parametrize("length", [0, NONCE_SIZE + TAG_SIZE - 1, 10 ** 9])
    def test_invalid_length_prefix(self, length):
        reader = FrameReader(MemoryStream(struct.pack('!I', length) + b"\x00" * 64))

        with pytest.raises(FrameFormatError):
            reader.read_frame()

    def test_eof_inside_header(self):
        reader = FrameReader(MemoryStream(b"\x00\x00"))

        with pytest.raises(TransportError):
            reader.read_frame()

    def test_eof_inside_frame(self, secret_pair):
        sender, _ = secret_pair
        wire = MemoryStream()
        FrameWriter(wire).write_frame(encode_frame(sender, b"cut short"))

        reader = FrameReader(MemoryStream(bytes(wire.written[:-5])))

        with pytest.raises(TransportError):
            reader.read_frame()

    def test_short_write(self, secret_pair):
        """A stream accepting fewer bytes than the frame raises ShortWrite."""
        sender, _ = secret_pair
        writer = FrameWriter(MemoryStream(short_by=1))

        with pytest.raises(ShortWrite) as exc_info:
            writer.write_frame(encode_frame(sender, b"partial"))

        assert exc_info.value.expected - exc_info.value.written == 1

    def test_unknown_framing(self):
        with pytest.raises(ValueError):
            FrameReader(MemoryStream(), "chunked")
        with pytest.raises(ValueError):
            FrameWriter(MemoryStream(), "chunked")
