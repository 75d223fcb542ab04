import math
from dataclasses import dataclass
from typing import Tuple

from loguru import logger

from simple_nerf.dataloader import SimpleNerfDataset
from simple_nerf.errors import FormatError
from simple_nerf.rays import build_records
from simple_nerf.source import fetch_url, open_path, read_arrays


@dataclass(frozen=True)
class SimpleNerfDatasetConfig:
    #samples taken along every ray
    points_per_ray: int
    #near and far distance of the sampled interval
    distance_range: Tuple[float, float]

    def __post_init__(self):
        if isinstance(self.points_per_ray, bool) or not isinstance(self.points_per_ray, int):
            raise ValueError(f"points_per_ray must be an int, got {self.points_per_ray!r}")
        if self.points_per_ray < 0:
            raise ValueError(f"points_per_ray must be >= 0, got {self.points_per_ray}")
        near, far = self.distance_range
        if not (math.isfinite(near) and math.isfinite(far)):
            raise ValueError(f"distance_range must be finite, got {self.distance_range}")
        if near > far:
            raise ValueError(f"distance_range must run from near to far, got {self.distance_range}")
        object.__setattr__(self, "distance_range", (float(near), float(far)))

    @classmethod
    def from_dict(cls, options):
        return cls(
            points_per_ray=options["points_per_ray"],
            distance_range=tuple(options["distance_range"]),
        )

    def init_from_reader(self, reader, device="cpu"):
        """Build a dataset from a seekable binary stream holding an .npz archive."""
        try:
            arrays = read_arrays(reader, device=device)
            records = build_records(
                arrays.focal, arrays.images, arrays.poses,
                self.points_per_ray, self.distance_range,
            )
        except FormatError as e:
            logger.error("Invalid dataset: {}", e)
            raise
        logger.info("Loaded {} posed images", len(records))
        return SimpleNerfDataset(records, device=device)

    def init_from_file_path(self, file_path, device="cpu"):
        with open_path(file_path) as reader:
            return self.init_from_reader(reader, device=device)

    def init_from_url(self, url, device="cpu", timeout=60.0, progress=True):
        return self.init_from_reader(fetch_url(url, timeout=timeout, progress=progress), device=device)
