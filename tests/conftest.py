"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import io

import pytest

from shapepack import CodecConfig


@pytest.fixture
def sample_record_bytes() -> bytes:
    """Wire form of the sample record used across tests."""
    return bytes.fromhex(
        "86"
        "a3414141" "aa31323334353637383930"
        "a3424242" "ccff"
        "a3636363" "a53132333435"
        "a15f" "22"
        "a3474747" "33"
        "a3484848" "a3313030"
    )


@pytest.fixture
def sink() -> io.BytesIO:
    """Empty in-memory byte sink."""
    return io.BytesIO()


@pytest.fixture
def tight_config() -> CodecConfig:
    """Config with small limits for exercising limit checks."""
    return CodecConfig(max_depth=4, max_container_length=16, max_bytes_length=64)
