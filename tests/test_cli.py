"""Tests for the erode.py command-line interface."""

import json

import numpy as np
import pytest
from PIL import Image

import erode

SMALL_ARGS = ["--size", "32", "--gridsize", "2", "--featuresize", "8", "--seed", "1"]


class TestMain:
    """Test full command-line runs."""

    def test_writes_output(self, tmp_path):
        output = tmp_path / "terrain.png"
        assert erode.main(SMALL_ARGS + ["--outputfile", str(output)]) == 0

        with Image.open(output) as img:
            assert img.mode == "RGBA"
            assert img.size == (32, 32)

    def test_noise_only(self, tmp_path):
        output = tmp_path / "noise.png"
        assert erode.main(SMALL_ARGS + ["--noise-only", "--outputfile", str(output)]) == 0
        assert output.is_file()

    def test_missing_input_writes_nothing(self, tmp_path):
        output = tmp_path / "never.png"
        code = erode.main(SMALL_ARGS + ["--input", str(tmp_path / "missing.png"), "--outputfile", str(output)])
        assert code == 1
        assert not output.exists()

    def test_invalid_setting_exits_nonzero(self, tmp_path):
        output = tmp_path / "never.png"
        assert erode.main(["--size", "0", "--outputfile", str(output)]) == 1
        assert not output.exists()

    def test_unparsable_number(self):
        with pytest.raises(SystemExit) as excinfo:
            erode.main(["--size", "big"])
        assert excinfo.value.code == 2

    def test_unknown_flag(self):
        with pytest.raises(SystemExit) as excinfo:
            erode.main(["--colour", "blue"])
        assert excinfo.value.code == 2


class TestBuildConfig:
    """Test merging of JSON settings and flags."""

    def test_flags_override_json(self, tmp_path):
        config_path = tmp_path / "run.json"
        config_path.write_text(json.dumps({'image_size': 256, 'grid_size': 10}))
        args = erode.build_parser().parse_args(["--config", str(config_path), "--gridsize", "12"])
        config = erode.build_config(args)

        assert config['image_size'] == 256
        assert config['grid_size'] == 12
        assert config['output_file'] == "output.png"

    def test_bad_json(self, tmp_path):
        config_path = tmp_path / "broken.json"
        config_path.write_text("{not json")
        args = erode.build_parser().parse_args(["--config", str(config_path)])
        with pytest.raises(erode.ConfigError):
            erode.build_config(args)


class TestWideInput:
    """Test a 16-bit heightmap given as the first pass."""

    def test_16bit_input_is_used(self, tmp_path):
        wide = np.linspace(0, 65535, 32 * 32).astype(np.uint16).reshape(32, 32)
        source = tmp_path / "h16.png"
        Image.fromarray(wide).save(source)
        output = tmp_path / "out.png"

        code = erode.main(SMALL_ARGS + ["--stages", "1", "--input", str(source), "--outputfile", str(output)])
        assert code == 0
        with Image.open(output) as img:
            red = np.array(img)[..., 0]
        assert len(np.unique(red)) > 1
