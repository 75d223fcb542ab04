import io
import urllib.error
import urllib.request
from http.client import IncompleteRead

import numpy as np
import pytest

from simple_nerf import SimpleNerfDatasetConfig
from simple_nerf.errors import (
    BadStatus,
    ConnectionRefused,
    FormatError,
    RetrievalError,
    RetrievalErrorCode,
    TransferInterrupted,
)
from simple_nerf.source import fetch_url, read_arrays

TEST_DATA_URL = "https://example.com/lego-tiny/data.npz"

CONFIG = SimpleNerfDatasetConfig(points_per_ray=7, distance_range=(2.0, 6.0))


class FakeResponse:
    def __init__(self, body, status=200, content_length=None, fail_after=None):
        self._body = io.BytesIO(body)
        self._fail_after = fail_after
        self.status = status
        length = len(body) if content_length is None else content_length
        self.headers = {"Content-Length": str(length)}

    def read(self, size=-1):
        if self._fail_after is not None and self._body.tell() >= self._fail_after:
            raise IncompleteRead(b"")
        return self._body.read(size)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def _serve(monkeypatch, response=None, error=None):
    def urlopen(url, timeout=None):
        if error is not None:
            raise error
        return response

    monkeypatch.setattr(urllib.request, "urlopen", urlopen)


def test_read_arrays(archive_path):
    with open(archive_path, "rb") as f:
        arrays = read_arrays(f)

    assert arrays.focal == 2.0
    assert tuple(arrays.images.shape) == (106, 4, 5, 3)
    assert tuple(arrays.poses.shape) == (106, 3, 4)


def test_init_from_reader(archive_path):
    dataset = CONFIG.init_from_reader(io.BytesIO(archive_path.read_bytes()))
    assert len(dataset) == 106


def test_missing_array(write_archive):
    path = write_archive(poses=None)
    with pytest.raises(FormatError, match="poses"):
        CONFIG.init_from_file_path(path)


def test_count_mismatch(write_archive):
    path = write_archive(poses=np.zeros((105, 3, 4), dtype=np.float32))
    with pytest.raises(FormatError):
        CONFIG.init_from_file_path(path)


def test_wrong_channel_count(write_archive):
    path = write_archive(images=np.zeros((106, 4, 5, 4), dtype=np.float32))
    with pytest.raises(FormatError):
        CONFIG.init_from_file_path(path)


def test_not_an_archive(tmp_path):
    path = tmp_path / "data.npz"
    path.write_bytes(b"this is not a zip file at all")
    with pytest.raises(FormatError):
        CONFIG.init_from_file_path(path)


def test_single_array_file(tmp_path):
    path = tmp_path / "data.npy"
    np.save(path, np.zeros(3))
    with pytest.raises(FormatError):
        CONFIG.init_from_file_path(path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        CONFIG.init_from_file_path(tmp_path / "missing.npz")


def test_remote_retrieval(monkeypatch, archive_path):
    _serve(monkeypatch, FakeResponse(archive_path.read_bytes()))

    dataset = CONFIG.init_from_url(TEST_DATA_URL, progress=False)

    assert len(dataset.records) == 106


def test_bad_status(monkeypatch):
    _serve(monkeypatch, error=urllib.error.HTTPError(TEST_DATA_URL, 404, "Not Found", None, None))

    with pytest.raises(BadStatus) as info:
        fetch_url(TEST_DATA_URL, progress=False)
    assert info.value.status == 404
    assert info.value.code is RetrievalErrorCode.STATUS


def test_non_success_status_without_http_error(monkeypatch):
    _serve(monkeypatch, FakeResponse(b"", status=304))

    with pytest.raises(BadStatus):
        fetch_url(TEST_DATA_URL, progress=False)


def test_unreachable_host(monkeypatch):
    _serve(monkeypatch, error=urllib.error.URLError(ConnectionRefusedError(111, "Connection refused")))

    with pytest.raises(ConnectionRefused) as info:
        CONFIG.init_from_url(TEST_DATA_URL, progress=False)
    assert info.value.code is RetrievalErrorCode.REFUSED
    assert isinstance(info.value, ConnectionError)


def test_short_body(monkeypatch):
    _serve(monkeypatch, FakeResponse(b"abc", content_length=10))

    with pytest.raises(TransferInterrupted) as info:
        fetch_url(TEST_DATA_URL, progress=False)
    assert info.value.code is RetrievalErrorCode.INTERRUPTED


def test_broken_transfer(monkeypatch):
    _serve(monkeypatch, FakeResponse(b"x" * 200000, fail_after=65536))

    with pytest.raises(TransferInterrupted):
        fetch_url(TEST_DATA_URL, progress=False)


def test_error_codes_are_distinct():
    codes = {cls.code for cls in (ConnectionRefused, BadStatus, TransferInterrupted)}
    assert len(codes) == 3
    assert all(issubclass(cls, RetrievalError) for cls in (ConnectionRefused, BadStatus, TransferInterrupted))
