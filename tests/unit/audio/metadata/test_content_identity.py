"""Tests for file content identity."""

import pytest

from tunetrace.core.audio.metadata.content_identity import compute_content_identity


def test_identity_ignores_path_and_name(tmp_path) -> None:
    data = b"RIFF" + bytes(range(256)) * 64
    first = tmp_path / "a.wav"
    second = tmp_path / "sub" / "b.wav"
    second.parent.mkdir()
    first.write_bytes(data)
    second.write_bytes(data)

    identity = compute_content_identity(first)

    assert identity == compute_content_identity(second)
    assert len(identity) == 64


def test_small_file_detects_single_byte_change(tmp_path) -> None:
    path = tmp_path / "song.mp3"
    data = bytearray(b"x" * 2 * 1024 * 1024)
    path.write_bytes(bytes(data))
    before = compute_content_identity(path)

    data[1024 * 1024] = ord("y")
    path.write_bytes(bytes(data))

    assert compute_content_identity(path) != before


def test_large_file_hashes_head_and_tail_only(tmp_path) -> None:
    window = 16
    path = tmp_path / "long.flac"
    data = bytearray(b"a" * window + b"m" * 100 + b"z" * window)
    path.write_bytes(bytes(data))
    before = compute_content_identity(path, window_bytes=window)

    data[window + 50] = ord("q")
    path.write_bytes(bytes(data))
    assert compute_content_identity(path, window_bytes=window) == before

    data[-1] = ord("q")
    path.write_bytes(bytes(data))
    assert compute_content_identity(path, window_bytes=window) != before


def test_missing_file_raises(tmp_path) -> None:
    with pytest.raises(OSError):
        compute_content_identity(tmp_path / "missing.mp3")
