import math
from dataclasses import dataclass

import torch
from loguru import logger

from simple_nerf.errors import FormatError


@dataclass(frozen=True)
class RayRecord:
    """Ray samples of one image. Never mutated once built."""
    directions: torch.Tensor  # (H, W, S, 3)
    distances: torch.Tensor  # (H, W, S, 1)
    image: torch.Tensor  # (H, W, 3)
    origins: torch.Tensor  # (H, W, S, 3)

    def __post_init__(self):
        if self.directions.dim() != 4 or self.directions.shape[3] != 3:
            raise FormatError(f"directions must be (H, W, S, 3), got {tuple(self.directions.shape)}")
        H, W, S, _ = self.directions.shape
        if tuple(self.distances.shape) != (H, W, S, 1):
            raise FormatError(f"distances must be {(H, W, S, 1)}, got {tuple(self.distances.shape)}")
        if tuple(self.image.shape) != (H, W, 3):
            raise FormatError(f"image must be {(H, W, 3)}, got {tuple(self.image.shape)}")
        if tuple(self.origins.shape) != (H, W, S, 3):
            raise FormatError(f"origins must be {(H, W, S, 3)}, got {tuple(self.origins.shape)}")

    @property
    def points_per_ray(self):
        return self.directions.shape[2]


def get_ray_planes(H, W, focal, device="cpu"):
    """
    Camera-space ray directions for every pixel, on the plane z = -1.

    Args:
        H (int): Image height
        W (int): Image width
        focal (float): Pinhole focal length in pixels

    Returns:
        planes: (H, W, 3)
    """
    i, j = torch.meshgrid(
        torch.arange(W, dtype=torch.float32, device=device),
        torch.arange(H, dtype=torch.float32, device=device),
        indexing='xy'
    )

    # Row index grows downward, camera y points up, camera looks down -z
    planes = torch.stack([
        (i - W / 2) / focal,
        -(j - H / 2) / focal,
        -torch.ones_like(i)
    ], dim=-1)

    assert planes.shape == (H, W, 3)
    return planes


def get_rays(planes, poses):
    """
    Rotate camera-space planes into world space for a batch of poses.

    Args:
        planes: (H, W, 3)
        poses: (N, 3, 4) camera-to-world matrices

    Returns:
        rays_o: (N, H, W, 3) Ray origins in world space
        rays_d: (N, H, W, 3) Ray directions in world space, not normalized
    """
    N = poses.shape[0]
    H, W = planes.shape[:2]

    # (1, H, W, 1, 3) * (N, 1, 1, 3, 3) summed over the camera axes
    rays_d = torch.sum(planes[None, :, :, None, :] * poses[:, None, None, :3, :3], dim=-1)
    rays_o = poses[:, None, None, :3, 3].expand(N, H, W, 3)

    assert rays_d.shape == (N, H, W, 3)
    return rays_o, rays_d


def get_distances(points_per_ray, distance_range, device="cpu"):
    """
    Start of each of `points_per_ray` equal bins over [near, far).

    The far end itself is never sampled; jitter of one bin width covers it.
    """
    near, far = distance_range
    if points_per_ray == 0:
        return torch.zeros(0, dtype=torch.float32, device=device)
    step = (far - near) / points_per_ray
    t_vals = torch.arange(points_per_ray, dtype=torch.float32, device=device) * step + near
    return t_vals


def check_arrays(focal, images, poses):
    if images.dim() != 4:
        raise FormatError(f"images must be (N, H, W, 3), got {tuple(images.shape)}")
    if poses.dim() != 3 or poses.shape[1] < 3 or poses.shape[2] < 4:
        raise FormatError(f"poses must be (N, 3, 4), got {tuple(poses.shape)}")

    image_count, _, _, channel_count = images.shape
    if image_count != poses.shape[0]:
        raise FormatError(f"{image_count} images but {poses.shape[0]} poses")
    if channel_count != 3:
        raise FormatError(f"images must have 3 channels, got {channel_count}")
    if not math.isfinite(focal) or focal == 0:
        raise FormatError(f"invalid focal length {focal}")


def build_records(focal, images, poses, points_per_ray, distance_range):
    """
    Turn posed images into per-image ray records.

    Args:
        focal: float
        images: (N, H, W, 3)
        poses: (N, 3, 4), 4x4 poses are cut down to their first 3 rows
        points_per_ray: int
        distance_range: (near, far)

    Returns:
        list of N RayRecord
    """
    check_arrays(focal, images, poses)

    N, H, W, _ = images.shape
    S = points_per_ray
    device = images.device
    images = images.float()
    poses = poses[:, :3, :4].float().to(device)

    planes = get_ray_planes(H, W, focal, device=device)
    rays_o, rays_d = get_rays(planes, poses)

    # New sample axis: directions are tiled, origins stay a broadcast view
    directions = rays_d[:, :, :, None, :].repeat(1, 1, 1, S, 1)
    origins = rays_o[:, :, :, None, :].expand(N, H, W, S, 3)

    distances = get_distances(S, distance_range, device=device)
    distances = distances[None, None, None, :, None].expand(N, H, W, S, 1)

    assert directions.shape == (N, H, W, S, 3)
    assert origins.shape == directions.shape
    assert distances.shape == (N, H, W, S, 1)

    logger.debug("Ray field: {} images of {}x{}, {} samples per ray", N, H, W, S)

    return [
        RayRecord(
            directions=directions[n],
            distances=distances[n],
            image=images[n],
            origins=origins[n],
        )
        for n in range(N)
    ]
