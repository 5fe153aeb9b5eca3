"""Tests for the multi-pass erosion pipeline."""

import numpy as np
import pytest

from pseudo_erosion import codec
from pseudo_erosion.exceptions import ConfigError
from pseudo_erosion.image_io import write_image
from pseudo_erosion.pipeline import ErosionPipeline

SMALL_RUN = {'image_size': 64, 'grid_size': 4, 'feature_size': 16, 'seed': 1}


class TestEndToEnd:
    """Test complete runs."""

    def test_reference_scenario(self, logger):
        """Test size, opacity and variation for 64 px, grid 4, feature 16, seed 1."""
        pixels = ErosionPipeline(SMALL_RUN, logger).run()
        rgba = codec.pixels_to_rgba(pixels)

        assert pixels.shape == (64, 64)
        assert rgba.shape == (64, 64, 4)
        assert np.all(rgba[..., 3] == 255)
        np.testing.assert_array_equal(rgba[..., 0], rgba[..., 1])
        assert len(np.unique(pixels)) > 1

    def test_deterministic(self, logger, tmp_path):
        """Test that identical settings give byte-identical PNG files."""
        paths = []
        for name in ("a.png", "b.png"):
            pixels = ErosionPipeline(dict(SMALL_RUN), logger).run()
            path = tmp_path / name
            write_image(str(path), pixels, 64, 64, 4, True)
            paths.append(path)

        assert paths[0].read_bytes() == paths[1].read_bytes()

    def test_seed_changes_output(self, logger):
        a = ErosionPipeline(dict(SMALL_RUN), logger).run()
        b = ErosionPipeline(dict(SMALL_RUN, seed=2), logger).run()
        assert not np.array_equal(a, b)

    def test_single_pass_is_raw_field(self, logger):
        """Test that one pass returns the first distance field untouched."""
        pipeline = ErosionPipeline(dict(SMALL_RUN, stage_count=1), logger)
        np.testing.assert_array_equal(pipeline.run(), pipeline.run_pass(1))

    def test_stage_images_written(self, logger, tmp_path):
        stage_dir = tmp_path / "stages"
        ErosionPipeline(dict(SMALL_RUN, stage_dir=str(stage_dir)), logger).run()
        for stage in range(1, 6):
            assert (stage_dir / f"stage_{stage}.png").is_file()

    def test_stage_densities(self, logger):
        pipeline = ErosionPipeline(dict(SMALL_RUN), logger)
        assert [pipeline.stage_density(s) for s in range(1, 6)] == [4, 8, 16, 32, 64]

    def test_initial_noise_image(self, logger):
        pixels = ErosionPipeline(dict(SMALL_RUN), logger).generate_initial_noise()
        assert pixels.shape == (64, 64)
        assert np.all(codec.pixels_to_rgba(pixels)[..., 3] == 255)
        assert len(np.unique(pixels)) > 1


class TestInputImage:
    """Test runs that start from a pre-supplied image."""

    def test_input_replaces_first_pass(self, logger, tmp_path):
        heights = np.random.default_rng(5).uniform(-1, 1, (64, 64))
        pixels = codec.encode_height(heights)
        path = str(tmp_path / "input.png")
        write_image(path, pixels, 64, 64, 4, True)

        result = ErosionPipeline(dict(SMALL_RUN, input_file=path, stage_count=1), logger).run()
        np.testing.assert_array_equal(result, pixels)

    def test_missing_input_fails_before_grid_work(self, logger, tmp_path, monkeypatch):
        def no_grids(*args, **kwargs):
            raise AssertionError("grid built before the input image was validated")

        monkeypatch.setattr("pseudo_erosion.pipeline.DrainageGrid", no_grids)
        pipeline = ErosionPipeline(dict(SMALL_RUN, input_file=str(tmp_path / "missing.png")), logger)
        with pytest.raises(FileNotFoundError):
            pipeline.run()

    def test_wrong_size_input(self, logger, tmp_path):
        path = str(tmp_path / "small.png")
        write_image(path, codec.encode_height(np.zeros((32, 32))), 32, 32, 4, True)
        with pytest.raises(ConfigError):
            ErosionPipeline(dict(SMALL_RUN, input_file=path), logger).run()


class TestSettings:
    """Test configuration handling."""

    def test_defaults(self, logger):
        pipeline = ErosionPipeline({}, logger)
        assert pipeline.image_size == 1024
        assert pipeline.feature_size == 64
        assert pipeline.grid_size == 30
        assert pipeline.seed == 123456

    @pytest.mark.parametrize("override", [
        {'image_size': 0},
        {'grid_size': -1},
        {'feature_size': "64"},
        {'stage_count': 6},
        {'stage_count': 0},
        {'jitter': "gaussian"},
    ])
    def test_invalid_settings(self, logger, override):
        with pytest.raises(ConfigError):
            ErosionPipeline(dict(SMALL_RUN, **override), logger)


class TestResources:
    """Test noise context ownership and per-pass seeding."""

    def test_close_releases_owned_context(self, logger):
        pipeline = ErosionPipeline(dict(SMALL_RUN, stage_count=1), logger)
        pipeline.run()
        pipeline.close()
        assert pipeline.noise.released

    def test_close_keeps_injected_context(self, logger, noise_ctx):
        pipeline = ErosionPipeline(dict(SMALL_RUN, stage_count=1), logger, noise_ctx=noise_ctx)
        pipeline.close()
        assert not noise_ctx.released

    def test_uniform_jitter_seeded_per_pass(self, logger, monkeypatch):
        import pseudo_erosion.pipeline as pipeline_module

        seeds = []
        real_grid = pipeline_module.DrainageGrid

        def recording_grid(*args, **kwargs):
            seeds.append(kwargs['seed'])
            return real_grid(*args, **kwargs)

        monkeypatch.setattr(pipeline_module, "DrainageGrid", recording_grid)
        ErosionPipeline(dict(SMALL_RUN, jitter="uniform"), logger).run()

        assert seeds == [2, 3, 4, 5, 6]
