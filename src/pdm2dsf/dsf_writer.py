"""
DSF (DSD Stream File) writer for raw mono PDM bitstreams.

The whole bitstream is held in memory. The file is written as three fixed
header chunks (DSD, fmt, data) followed by the payload, zero-padded up to a
multiple of the DSF block size.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from .errors import ConfigError, DsfWriteError, OutputCreateError
from .logging_utils import EventLogger, EventType

logger = logging.getLogger(__name__)

BLOCK_SIZE = 4096
DSD_CHUNK_SIZE = 28
FMT_CHUNK_SIZE = 52
DATA_CHUNK_HEADER_SIZE = 12
HEADER_SIZE = DSD_CHUNK_SIZE + FMT_CHUNK_SIZE + DATA_CHUNK_HEADER_SIZE
DEFAULT_BIT_RATE = 2_822_400
MAX_BIT_RATE = 0xFFFFFFFF

FORMAT_VERSION = 1
FORMAT_ID_RAW = 0
CHANNEL_TYPE_MONO = 1
CHANNEL_COUNT_MONO = 1
BITS_PER_SAMPLE = 1

_DSD_STRUCT = struct.Struct("<4sQQQ")
_FMT_STRUCT = struct.Struct("<4sQIIIIIIQII")
_DATA_STRUCT = struct.Struct("<4sQ")


def padded_size(length: int, block_size: int = BLOCK_SIZE) -> int:
    """Round ``length`` up to the next multiple of ``block_size``.

    An empty stream still occupies one block.
    """
    if length < 0:
        raise ValueError("length must be non-negative")
    if length == 0:
        return block_size
    return -(-length // block_size) * block_size


def is_standard_dsd_rate(bit_rate: int) -> bool:
    """Return True for DSD64 through DSD1024 on a 44.1 kHz or 48 kHz base."""
    for base in (44_100, 48_000):
        if bit_rate in {base * 2 ** shift for shift in range(6, 11)}:
            return True
    return False


@dataclass(frozen=True)
class DsdChunk:
    total_file_size: int
    metadata_pointer: int = 0

    def to_bytes(self) -> bytes:
        return _DSD_STRUCT.pack(
            b"DSD ", DSD_CHUNK_SIZE, self.total_file_size, self.metadata_pointer
        )


@dataclass(frozen=True)
class FmtChunk:
    sampling_frequency: int
    sample_count: int
    format_version: int = FORMAT_VERSION
    format_id: int = FORMAT_ID_RAW
    channel_type: int = CHANNEL_TYPE_MONO
    channel_count: int = CHANNEL_COUNT_MONO
    bits_per_sample: int = BITS_PER_SAMPLE
    block_size: int = BLOCK_SIZE
    reserved: int = 0

    def to_bytes(self) -> bytes:
        return _FMT_STRUCT.pack(
            b"fmt ",
            FMT_CHUNK_SIZE,
            self.format_version,
            self.format_id,
            self.channel_type,
            self.channel_count,
            self.sampling_frequency,
            self.bits_per_sample,
            self.sample_count,
            self.block_size,
            self.reserved,
        )


@dataclass(frozen=True)
class DataChunkHeader:
    payload_size: int

    @property
    def chunk_size(self) -> int:
        return self.payload_size + DATA_CHUNK_HEADER_SIZE

    def to_bytes(self) -> bytes:
        return _DATA_STRUCT.pack(b"data", self.chunk_size)


@dataclass(frozen=True)
class DsfStream:
    """A mono PDM bitstream together with its bit rate."""

    pdm_data: bytes
    bit_rate: int

    def __post_init__(self) -> None:
        validate_bit_rate(self.bit_rate)

    @property
    def sample_count(self) -> int:
        return len(self.pdm_data) * 8

    @property
    def padded_size(self) -> int:
        return padded_size(len(self.pdm_data))

    @property
    def padding_size(self) -> int:
        return self.padded_size - len(self.pdm_data)

    @property
    def total_size(self) -> int:
        return HEADER_SIZE + self.padded_size

    @property
    def duration_seconds(self) -> float:
        return self.sample_count / self.bit_rate

    def dsd_chunk(self) -> DsdChunk:
        return DsdChunk(total_file_size=self.total_size)

    def fmt_chunk(self) -> FmtChunk:
        return FmtChunk(sampling_frequency=self.bit_rate, sample_count=self.sample_count)

    def data_chunk(self) -> DataChunkHeader:
        return DataChunkHeader(payload_size=self.padded_size)

    def header_bytes(self) -> bytes:
        return (
            self.dsd_chunk().to_bytes()
            + self.fmt_chunk().to_bytes()
            + self.data_chunk().to_bytes()
        )

    def report(self, event_logger: EventLogger) -> None:
        event_logger.log(
            EventType.PDM_STREAM,
            bits=self.sample_count,
            bytes=len(self.pdm_data),
            bit_rate=self.bit_rate,
            duration_s=self.duration_seconds,
            unpadded_bytes=len(self.pdm_data),
            padded_bytes=self.padded_size,
        )


def validate_bit_rate(bit_rate: int) -> int:
    if isinstance(bit_rate, bool) or not isinstance(bit_rate, int):
        raise ConfigError("bit_rate must be an integer")
    if bit_rate <= 0:
        raise ConfigError("bit_rate must be positive")
    if bit_rate > MAX_BIT_RATE:
        raise ConfigError("bit_rate must fit in 32 bits")
    return bit_rate


def write_dsf(
    pdm_data: bytes,
    bit_rate: int,
    output_path: str | Path,
    *,
    event_logger: EventLogger | None = None,
) -> DsfStream:
    """Write ``pdm_data`` to ``output_path`` as a mono raw-DSD DSF file.

    The destination is created or truncated. On failure a partially written
    file may be left behind.
    """
    stream = DsfStream(pdm_data=bytes(pdm_data), bit_rate=bit_rate)
    path = Path(output_path)
    if event_logger is not None:
        stream.report(event_logger)

    try:
        fh = _open_output(path)
    except OSError as exc:
        raise OutputCreateError(path, exc) from exc

    try:
        with fh:
            fh.write(stream.header_bytes())
            fh.write(stream.pdm_data)
            if stream.padding_size:
                fh.write(bytes(stream.padding_size))
            fh.flush()
    except OSError as exc:
        raise DsfWriteError(path, exc) from exc

    logger.debug(
        "Wrote %s (%d bytes, %d padding)", path, stream.total_size, stream.padding_size
    )
    if event_logger is not None:
        event_logger.log(
            EventType.DSF_WRITTEN,
            path=path,
            total_bytes=stream.total_size,
            padding_bytes=stream.padding_size,
        )
    return stream


def _open_output(path: Path) -> BinaryIO:
    return path.open("wb")
