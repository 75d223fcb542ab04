import math
from collections import namedtuple
from dataclasses import dataclass

import torch
from loguru import logger

from simple_nerf.sampler import JitteredSampling, PlainSampling, sample_positions, step_size

DatasetSplit = namedtuple("DatasetSplit", ["train", "test"])


@dataclass
class SimpleNerfDatasetItem:
    directions: torch.Tensor  # (H, W, S, 3)
    distances: torch.Tensor  # (H, W, S, 1)
    image: torch.Tensor  # (H, W, 3)
    positions: torch.Tensor  # (H, W, S, 3)
    origins: torch.Tensor  # (H, W, S, 3)

    def as_dict(self):
        return {
            "directions": self.directions,
            "distances": self.distances,
            "image": self.image,
            "positions": self.positions,
            "origins": self.origins,
        }


def split_point(ratio, count):
    """Index of the first test record; halves round away from zero."""
    if math.isnan(ratio):
        raise ValueError("split ratio must be a number")
    ratio = min(max(ratio, 0.0), 1.0)
    return int(math.floor(ratio * count + 0.5))


class SimpleNerfDataset(torch.utils.data.Dataset):
    """
    Ordered per-image ray records.

    Positions are not stored: every read rebuilds them from origins,
    directions and distances, perturbing the distances when the sampling
    policy is jittered.
    """

    def __init__(self, records, sampling=None, device="cpu"):
        super().__init__()
        self.records = tuple(records)
        self.sampling = sampling if sampling is not None else PlainSampling()
        self.device = torch.device(device)

    @property
    def has_noisy_distance(self):
        return self.sampling.jittered

    def __len__(self):
        return len(self.records)

    def get(self, index, generator=None):
        """
        Assemble the item at `index`, or None when the index is out of range.

        Args:
            index: int
            generator: optional torch.Generator for the jitter draw

        Returns:
            SimpleNerfDatasetItem or None
        """
        if not 0 <= index < len(self.records):
            return None
        record = self.records[index]

        step = step_size(record.distances)
        distances = self.sampling.perturb(record.distances, step, generator)
        if self.sampling.jittered:
            logger.trace("Jittered record {} with step {}", index, step)

        positions = sample_positions(record.origins, record.directions, distances)

        # Fresh tensors only, so callers can never write into a stored record
        origins = record.origins[:1, :1, :1].clone().expand_as(record.origins)

        return SimpleNerfDatasetItem(
            directions=record.directions.clone(),
            distances=distances,
            image=record.image.clone(),
            positions=positions,
            origins=origins,
        )

    def __getitem__(self, idx):
        item = self.get(idx)
        if item is None:
            raise IndexError(f"index {idx} out of range for {len(self)} records")
        return item.as_dict()

    def split_for_training(self, ratio):
        """
        Contiguous train prefix and test suffix.

        The train part is always jittered and the test part never is, whatever
        this dataset's own policy. Records are shared, not copied.
        """
        k = split_point(ratio, len(self.records))
        train = SimpleNerfDataset(self.records[:k], JitteredSampling(), self.device)
        test = SimpleNerfDataset(self.records[k:], PlainSampling(), self.device)
        logger.info("Split {} records into {} train / {} test", len(self), len(train), len(test))
        return DatasetSplit(train=train, test=test)
