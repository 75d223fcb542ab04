from simple_nerf.config import SimpleNerfDatasetConfig
from simple_nerf.dataloader import DatasetSplit, SimpleNerfDataset, SimpleNerfDatasetItem
from simple_nerf.errors import (
    BadStatus,
    ConnectionRefused,
    FormatError,
    RetrievalError,
    RetrievalErrorCode,
    TransferInterrupted,
)
from simple_nerf.rays import RayRecord

__all__ = [
    "SimpleNerfDatasetConfig",
    "SimpleNerfDataset",
    "SimpleNerfDatasetItem",
    "DatasetSplit",
    "RayRecord",
    "FormatError",
    "RetrievalError",
    "RetrievalErrorCode",
    "ConnectionRefused",
    "BadStatus",
    "TransferInterrupted",
]
