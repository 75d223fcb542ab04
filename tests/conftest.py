import numpy as np
import pytest


def make_arrays(num_images=106, H=4, W=5, focal=2.0, channels=3, seed=0):
    rng = np.random.default_rng(seed)
    images = rng.uniform(0.0, 1.0, size=(num_images, H, W, channels)).astype(np.float32)

    # Cameras on the +z axis looking back at the origin, one step further out each
    poses = np.tile(np.eye(4, dtype=np.float32)[:3], (num_images, 1, 1))
    poses[:, 2, 3] = 4.0 + 0.01 * np.arange(num_images, dtype=np.float32)

    return {"focal": np.float64(focal), "images": images, "poses": poses}


@pytest.fixture
def write_archive(tmp_path):
    def write(name="data.npz", **overrides):
        arrays = make_arrays()
        arrays.update(overrides)
        arrays = {k: v for k, v in arrays.items() if v is not None}
        path = tmp_path / name
        np.savez(path, **arrays)
        return path

    return write


@pytest.fixture
def archive_path(write_archive):
    return write_archive()
