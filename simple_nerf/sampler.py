import torch


def step_size(distances):
    """
    Bin width of a record's distances, read off its first ray.

    Args:
        distances: (H, W, S, 1)

    Returns:
        float, 0.0 when there are fewer than two samples per ray
    """
    H, W, S, _ = distances.shape
    if H * W == 0 or S < 2:
        return 0.0
    return (distances[0, 0, 1, 0] - distances[0, 0, 0, 0]).item()


def new_generator(device="cpu"):
    generator = torch.Generator(device=device)
    generator.seed()
    return generator


class PlainSampling:
    """Distances are used exactly as built."""

    jittered = False

    def perturb(self, distances, step, generator=None):
        return distances.clone()


class JitteredSampling:
    """Every distance is pushed forward by an independent draw from [0, step)."""

    jittered = True

    def perturb(self, distances, step, generator=None):
        if generator is None:
            generator = new_generator(distances.device)
        noise = torch.rand(
            distances.shape, generator=generator, dtype=distances.dtype, device=distances.device
        )
        return distances + noise * step


def sample_positions(origins, directions, distances):
    """
    Points along every ray.

    Args:
        origins: (H, W, S, 3)
        directions: (H, W, S, 3)
        distances: (H, W, S, 1)

    Returns:
        positions: (H, W, S, 3)
    """
    positions = origins + directions * distances
    assert positions.shape == directions.shape
    return positions
