"""Tests for configuration, strategy construction and the seed driver."""

import sys

import numpy as np
import pytest

from streamline_seeding import pipeline
from streamline_seeding.exceptions import ConfigurationError
from streamline_seeding.pipeline import draw_seeds, save_seeds, main
from streamline_seeding.seeding import (
    Sphere,
    SeedMask,
    RandomPerVoxel,
    GridPerVoxel,
    Rejection,
    DensityLookup,
    create_strategy,
)
from streamline_seeding.utils.config import SeedingConfig
from streamline_seeding.utils.rng import RandomSource


@pytest.fixture
def mask_file(tmp_path, sparse_mask):
    path = tmp_path / "mask.npz"
    np.savez_compressed(path, voxels=sparse_mask.data, affine=sparse_mask.affine)
    return path


class TestSeedingConfig:
    """Tests for configuration validation."""

    def test_unknown_strategy(self):
        with pytest.raises(ConfigurationError, match="Unknown seeding strategy"):
            SeedingConfig(strategy="surface", num_seeds=10)

    def test_sphere_requires_radius(self):
        with pytest.raises(ConfigurationError):
            SeedingConfig(strategy="sphere", center=(0, 0, 0), num_seeds=10)

    def test_image_strategy_requires_image(self):
        with pytest.raises(ConfigurationError):
            SeedingConfig(strategy="grid_per_voxel")

    def test_inexhaustible_requires_count(self, mask_file):
        with pytest.raises(ConfigurationError, match="num_seeds"):
            SeedingConfig(strategy="mask", image=mask_file)

    def test_exhaustible_without_count(self, mask_file):
        config = SeedingConfig(strategy="random_per_voxel", image=str(mask_file), per_voxel=2)
        assert config.is_finite
        assert config.image == mask_file

    def test_invalid_workers(self):
        with pytest.raises(ConfigurationError):
            SeedingConfig(center=(0, 0, 0), radius=1.0, num_seeds=1, num_workers=0)


class TestCreateStrategy:
    """Tests for building strategies from configuration."""

    def test_sphere(self):
        config = SeedingConfig(center=(1, 2, 3), radius=4, num_seeds=5, rng_seed=3)
        strategy = create_strategy(config)
        assert isinstance(strategy, Sphere)
        assert strategy.radius == 4.0

    @pytest.mark.parametrize("name, cls", [
        ("mask", SeedMask),
        ("random_per_voxel", RandomPerVoxel),
        ("grid_per_voxel", GridPerVoxel),
        ("rejection", Rejection),
    ])
    def test_image_strategies(self, mask_file, name, cls):
        config = SeedingConfig(strategy=name, image=mask_file, num_seeds=10)
        strategy = create_strategy(config)
        assert isinstance(strategy, cls)
        assert strategy.source == str(mask_file)

    def test_rejection_interpolation(self, mask_file):
        config = SeedingConfig(strategy="rejection", image=mask_file, interpolate=True, num_seeds=1)
        assert create_strategy(config).lookup is DensityLookup.LINEAR

    def test_seeded_runs_repeat(self, mask_file):
        config = SeedingConfig(strategy="mask", image=mask_file, num_seeds=20, rng_seed=11)
        first = create_strategy(config).get_seed()
        second = create_strategy(config).get_seed()
        assert np.array_equal(first, second)


class TestDrawSeeds:
    """Tests for drawing seeds with worker threads."""

    def test_fixed_count_from_inexhaustible(self, rng):
        seeds = draw_seeds(Sphere([0, 0, 0], 1.0, rng=rng), num_seeds=250, num_workers=4)
        assert seeds.shape == (250, 3)
        assert np.all(np.linalg.norm(seeds, axis=1) <= 1.0 + 1e-9)

    def test_inexhaustible_requires_count(self):
        with pytest.raises(ConfigurationError):
            draw_seeds(Sphere([0, 0, 0], 1.0))

    def test_count_caps_exhaustible(self, sparse_mask, rng):
        seeds = draw_seeds(RandomPerVoxel(sparse_mask, num=10, rng=rng), num_seeds=7, num_workers=3)
        assert seeds.shape == (7, 3)

    def test_exhaustible_runs_dry(self, sparse_mask):
        strategy = GridPerVoxel(sparse_mask, os=2)
        seeds = draw_seeds(strategy, num_workers=2, show_progress=False)
        assert seeds.shape == (32, 3)
        assert strategy.get_seed() is None

    def test_exhausted_strategy_gives_empty_array(self, sparse_mask):
        strategy = RandomPerVoxel(sparse_mask, num=1)
        list(strategy)
        assert draw_seeds(strategy).shape == (0, 3)

    @pytest.mark.parametrize("num_workers", [1, 2, 8])
    def test_random_per_voxel_thread_safety(self, sparse_mask, num_workers, voxel_of):
        strategy = RandomPerVoxel(sparse_mask, num=25, rng=RandomSource(seed=num_workers))
        seeds = draw_seeds(strategy, num_workers=num_workers)

        assert len(seeds) == 100
        voxels = voxel_of(sparse_mask, seeds)
        unique, counts = np.unique(voxels, axis=0, return_counts=True)
        assert unique.tolist() == [[0, 0, 1], [1, 3, 2], [3, 1, 0], [4, 3, 2]]
        assert counts.tolist() == [25, 25, 25, 25]

    @pytest.mark.parametrize("num_workers", [1, 2, 8])
    def test_grid_per_voxel_thread_safety(self, sparse_mask, num_workers):
        reference = np.array(list(GridPerVoxel(sparse_mask, os=3)))
        seeds = draw_seeds(GridPerVoxel(sparse_mask, os=3), num_workers=num_workers)

        assert len(seeds) == len(reference) == 108
        order = np.lexsort(seeds.T)
        ref_order = np.lexsort(reference.T)
        assert np.allclose(seeds[order], reference[ref_order])


def test_save_seeds(tmp_path):
    seeds = np.array([[0.0, 1.0, 2.0], [3.5, -4.25, 5.125]])

    save_seeds(seeds, tmp_path / "out" / "seeds.npy")
    assert np.array_equal(np.load(tmp_path / "out" / "seeds.npy"), seeds)

    save_seeds(seeds, tmp_path / "seeds.csv")
    assert np.allclose(np.loadtxt(tmp_path / "seeds.csv", delimiter=","), seeds)


class TestMain:
    """Tests for the command-line entry point."""

    @pytest.fixture
    def built_configs(self, monkeypatch):
        """Record every configuration the CLI builds a strategy from."""
        configs = []

        def recording_create_strategy(config):
            configs.append(config)
            return create_strategy(config)

        monkeypatch.setattr(pipeline, "create_strategy", recording_create_strategy)
        return configs

    def test_sphere_with_negative_centre(self, tmp_path, monkeypatch, built_configs):
        out = tmp_path / "sphere.npy"
        monkeypatch.setattr(sys, "argv", [
            "streamline-seeds", "--seed-sphere", "-10", "4", "-6.5", "2",
            "--num-seeds", "5", "--rng-seed", "1", str(out),
        ])
        main()

        assert built_configs[0].center == (-10.0, 4.0, -6.5)
        assert built_configs[0].radius == 2.0
        seeds = np.load(out)
        assert seeds.shape == (5, 3)
        assert np.all(np.linalg.norm(seeds - [-10.0, 4.0, -6.5], axis=1) <= 2.0 + 1e-9)

    def test_random_per_voxel_text_output(self, tmp_path, mask_file, monkeypatch, built_configs):
        out = tmp_path / "seeds.csv"
        monkeypatch.setattr(sys, "argv", [
            "streamline-seeds", "--seed-random-per-voxel", str(mask_file), "3",
            "--workers", "2", str(out),
        ])
        main()

        assert built_configs[0].strategy == "random_per_voxel"
        assert built_configs[0].per_voxel == 3
        assert np.loadtxt(out, delimiter=",").shape == (12, 3)

    def test_rejection_with_interpolation(self, tmp_path, mask_file, monkeypatch, built_configs):
        out = tmp_path / "seeds.npy"
        monkeypatch.setattr(sys, "argv", [
            "streamline-seeds", "--seed-rejection", str(mask_file), "--interpolate",
            "--num-seeds", "40", "--workers", "2", str(out),
        ])
        main()

        assert built_configs[0].strategy == "rejection"
        assert built_configs[0].interpolate
        assert np.load(out).shape == (40, 3)

    def test_invalid_count_exits(self, tmp_path, mask_file, monkeypatch):
        monkeypatch.setattr(sys, "argv", [
            "streamline-seeds", "--seed-grid-per-voxel", str(mask_file), "two",
            str(tmp_path / "seeds.npy"),
        ])
        with pytest.raises(SystemExit) as excinfo:
            main()
        assert excinfo.value.code == 1
        assert not (tmp_path / "seeds.npy").exists()
