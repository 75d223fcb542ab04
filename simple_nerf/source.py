import io
import urllib.error
import urllib.request
import zipfile
import zlib
from collections import namedtuple
from http.client import HTTPException

import numpy as np
import torch
from loguru import logger
from tqdm import tqdm

from simple_nerf.errors import BadStatus, ConnectionRefused, FormatError, TransferInterrupted

ARRAY_NAMES = ("focal", "images", "poses")
CHUNK_SIZE = 1 << 16

RawArrays = namedtuple("RawArrays", ["focal", "images", "poses"])


def read_arrays(stream, device="cpu"):
    """
    Decode the focal length, images and poses of an .npz archive.

    Args:
        stream: seekable binary file object
        device: torch device the tensors are placed on

    Returns:
        RawArrays(focal: float, images: (N, H, W, C) float32, poses: (N, R, K) float32)
    """
    try:
        archive = np.load(stream, allow_pickle=False)
    except (zipfile.BadZipFile, ValueError, EOFError) as e:
        raise FormatError(f"not an array archive: {e}") from e
    if not hasattr(archive, "files"):
        raise FormatError("expected an .npz archive, got a single array")

    with archive:
        missing = [name for name in ARRAY_NAMES if name not in archive.files]
        if missing:
            raise FormatError(f"archive is missing arrays: {', '.join(missing)}")
        try:
            focal = np.asarray(archive["focal"], dtype=np.float64).reshape(-1)
            images = np.asarray(archive["images"], dtype=np.float32)
            poses = np.asarray(archive["poses"], dtype=np.float32)
        except (zipfile.BadZipFile, zlib.error, ValueError, EOFError) as e:
            raise FormatError(f"corrupt array archive: {e}") from e

    if focal.size == 0:
        raise FormatError("focal array is empty")

    logger.debug("Read arrays: focal={}, images={}, poses={}", focal[0], images.shape, poses.shape)

    return RawArrays(
        focal=float(np.float32(focal[0])),
        images=torch.from_numpy(images).to(device),
        poses=torch.from_numpy(poses).to(device),
    )


def open_path(path):
    return open(path, "rb")


def fetch_url(url, timeout=60.0, progress=True):
    """
    Download a dataset archive into memory.

    Connection failures, non-2xx statuses and broken transfers are raised as
    ConnectionRefused, BadStatus and TransferInterrupted respectively.
    """
    logger.info("Fetching {}", url)
    try:
        response = urllib.request.urlopen(url, timeout=timeout)
    except urllib.error.HTTPError as e:
        raise BadStatus(url, e.code) from e
    except (urllib.error.URLError, OSError) as e:
        raise ConnectionRefused(url, f"cannot reach host: {e}") from e

    with response:
        status = getattr(response, "status", 200)
        if not 200 <= status < 300:
            raise BadStatus(url, status)

        length = response.headers.get("Content-Length")
        total = int(length) if length else None
        buffer = io.BytesIO()
        try:
            with tqdm(total=total, unit="B", unit_scale=True, disable=not progress) as bar:
                while True:
                    chunk = response.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    buffer.write(chunk)
                    bar.update(len(chunk))
        except (HTTPException, OSError) as e:
            raise TransferInterrupted(url, f"transfer failed: {e}") from e

    if total is not None and buffer.tell() < total:
        raise TransferInterrupted(url, f"received {buffer.tell()} of {total} bytes")

    buffer.seek(0)
    return buffer
