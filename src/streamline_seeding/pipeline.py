"""Drawing seeds from a strategy with a pool of worker threads."""

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional

import numpy as np
from tqdm import tqdm

from .exceptions import ConfigurationError, SeedingError
from .seeding import SeedStrategy, create_strategy
from .utils.config import SeedingConfig


def draw_seeds(
    strategy: SeedStrategy,
    num_seeds: Optional[int] = None,
    num_workers: int = 1,
    show_progress: bool = False
) -> np.ndarray:
    """Draw seeds from one strategy shared by several threads.

    Workers stop when the strategy is exhausted or, if given, once
    ``num_seeds`` seeds have been drawn in total. The order of the returned
    seeds across workers is unspecified.

    Args:
        strategy: Strategy to draw from
        num_seeds: Total number of seeds; None to run an exhaustible strategy dry
        num_workers: Number of worker threads
        show_progress: Show a tqdm progress bar

    Returns:
        Array of shape (N, 3) in scanner space

    Raises:
        ConfigurationError: If the draw would never end, or num_workers < 1
    """
    if num_seeds is None and not strategy.is_finite:
        raise ConfigurationError(
            f"Strategy '{strategy.name}' never runs out of seeds; num_seeds is required"
        )
    if num_workers < 1:
        raise ConfigurationError(f"num_workers must be >= 1, got {num_workers}")

    total = num_seeds if num_seeds is not None else strategy.count
    if num_seeds is not None and strategy.is_finite:
        total = min(num_seeds, strategy.count)

    lock = threading.Lock()
    claimed = 0

    def worker() -> List[np.ndarray]:
        nonlocal claimed
        seeds = []
        while True:
            if num_seeds is not None:
                with lock:
                    if claimed >= num_seeds:
                        break
                    claimed += 1
            seed = strategy.get_seed()
            if seed is None:
                break
            seeds.append(seed)
            with lock:
                pbar.update(1)
        return seeds

    with tqdm(total=total, desc=f"Seeding ({strategy.name})", disable=not show_progress) as pbar:
        with ThreadPoolExecutor(max_workers=num_workers) as executor:
            futures = [executor.submit(worker) for _ in range(num_workers)]
            results = [future.result() for future in futures]

    seeds = [seed for chunk in results for seed in chunk]
    if not seeds:
        return np.empty((0, 3), dtype=np.float64)
    return np.stack(seeds)


def save_seeds(seeds: np.ndarray, output_path: Path) -> None:
    """Save seeds as ``.npy`` or as comma-separated text.

    Args:
        seeds: Array of shape (N, 3)
        output_path: ``.npy`` path, any other suffix gives text
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if output_path.suffix == ".npy":
        np.save(output_path, seeds)
    else:
        np.savetxt(output_path, seeds, fmt="%.6f", delimiter=",")


def main():
    """Command-line entry point: draw seeds and write them to a file."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Generate streamline seed points"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--seed-sphere",
        nargs=4,
        type=float,
        metavar=("X", "Y", "Z", "R"),
        help="Seed uniformly inside a sphere (scanner coordinates)"
    )
    source.add_argument(
        "--seed-image",
        type=Path,
        metavar="IMAGE",
        help="Seed randomly within a mask image"
    )
    source.add_argument(
        "--seed-random-per-voxel",
        nargs=2,
        metavar=("IMAGE", "NUM"),
        help="Seed NUM random points in every mask voxel"
    )
    source.add_argument(
        "--seed-grid-per-voxel",
        nargs=2,
        metavar=("IMAGE", "OS"),
        help="Seed an OSxOSxOS grid in every mask voxel"
    )
    source.add_argument(
        "--seed-rejection",
        type=Path,
        metavar="IMAGE",
        help="Seed with density proportional to a non-negative image"
    )
    parser.add_argument(
        "--interpolate",
        action="store_true",
        help="Use trilinear density lookup for rejection sampling"
    )
    parser.add_argument(
        "--num-seeds",
        type=int,
        default=None,
        help="Number of seeds (required unless seeding per voxel)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Number of worker threads"
    )
    parser.add_argument(
        "--rng-seed",
        type=int,
        default=None,
        help="Random seed for reproducible output"
    )
    parser.add_argument(
        "output",
        type=Path,
        help="Output file (.npy, or comma-separated text otherwise)"
    )

    args = parser.parse_args()

    try:
        if args.seed_sphere is not None:
            options = dict(strategy="sphere", center=args.seed_sphere[:3], radius=args.seed_sphere[3])
        elif args.seed_image is not None:
            options = dict(strategy="mask", image=args.seed_image)
        elif args.seed_random_per_voxel is not None:
            image, num = args.seed_random_per_voxel
            options = dict(strategy="random_per_voxel", image=image, per_voxel=int(num))
        elif args.seed_grid_per_voxel is not None:
            image, os = args.seed_grid_per_voxel
            options = dict(strategy="grid_per_voxel", image=image, oversample=int(os))
        else:
            options = dict(strategy="rejection", image=args.seed_rejection, interpolate=args.interpolate)

        config = SeedingConfig(
            num_seeds=args.num_seeds,
            num_workers=args.workers,
            rng_seed=args.rng_seed,
            **options
        )
        strategy = create_strategy(config)
    except (SeedingError, ValueError, FileNotFoundError) as e:
        parser.exit(1, f"Error: {e}\n")

    print(f"Seeding: {strategy.name} from {strategy.source}")
    seeds = draw_seeds(
        strategy,
        num_seeds=config.num_seeds,
        num_workers=config.num_workers,
        show_progress=True
    )
    save_seeds(seeds, args.output)

    print(f"\nGenerated {len(seeds)} seeds")
    print(f"Saved to {args.output}")


if __name__ == "__main__":
    main()
