from __future__ import annotations

import struct

import pytest


def _read_chunks(raw: bytes) -> dict[str, tuple]:
    return {
        "dsd": struct.unpack_from("<4sQQQ", raw, 0),
        "fmt": struct.unpack_from("<4sQIIIIIIQII", raw, 28),
        "data": struct.unpack_from("<4sQ", raw, 80),
    }


@pytest.fixture
def read_chunks():
    return _read_chunks


@pytest.fixture
def pdm_ramp():
    return bytes(i % 256 for i in range(10_000))
