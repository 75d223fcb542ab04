import argparse
import sys

from loguru import logger

from simple_nerf.config import SimpleNerfDatasetConfig


def inspect_dataset(args):
    config = SimpleNerfDatasetConfig(
        points_per_ray=args.points_per_ray,
        distance_range=(args.near, args.far),
    )
    if args.source.startswith(("http://", "https://")):
        dataset = config.init_from_url(args.source, device=args.device)
    else:
        dataset = config.init_from_file_path(args.source, device=args.device)

    print(f"Records: {len(dataset)}")
    item = dataset.get(0)
    if item is not None:
        print("Directions shape:", tuple(item.directions.shape))
        print("Distances shape:", tuple(item.distances.shape))
        print("Image shape:", tuple(item.image.shape))
        print("Positions shape:", tuple(item.positions.shape))

    split = dataset.split_for_training(args.split)
    print(f"Train: {len(split.train)} (jittered)")
    print(f"Test: {len(split.test)}")


def main(argv=None):
    parser = argparse.ArgumentParser(prog="simple_nerf")
    sub = parser.add_subparsers(dest="cmd", required=True)

    ins = sub.add_parser("inspect", help="Load a posed-image .npz archive and print its ray dataset layout.")
    ins.add_argument("source", type=str, help="Path or http(s) URL of the archive.")
    ins.add_argument("--points-per-ray", type=int, default=8)
    ins.add_argument("--near", type=float, default=2.0)
    ins.add_argument("--far", type=float, default=6.0)
    ins.add_argument("--split", type=float, default=0.8, help="Fraction of images used for training.")
    ins.add_argument("--device", type=str, default="cpu")

    args = parser.parse_args(argv)

    if args.cmd == "inspect":
        try:
            inspect_dataset(args)
        except (ValueError, OSError) as e:
            logger.error("{}", e)
            return 1
        return 0

    raise AssertionError(f"unhandled command {args.cmd}")


if __name__ == "__main__":
    sys.exit(main())
