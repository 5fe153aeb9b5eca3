# erode.py

"""
================================================================================
PSEUDO-EROSION HEIGHTMAP GENERATOR
================================================================================
Command-line tool that generates a multi-scale pseudo-erosion heightmap and
saves it as an RGBA PNG (R = G = B = height, fully opaque).

Usage:
    python erode.py --size 1024 --featuresize 64 --gridsize 30 --seed 123456
    python erode.py --config path/to/config.json --outputfile terrain.png
    python erode.py --input noise.png --outputfile eroded.png
================================================================================
"""
import sys
import json
import logging
import argparse

from pseudo_erosion import config as DEFAULTS
from pseudo_erosion import image_io
from pseudo_erosion.exceptions import ConfigError, ImageFormatError
from pseudo_erosion.pipeline import ErosionPipeline

# CLI flag -> pipeline setting key
_FLAG_SETTINGS = {
    'featuresize': 'feature_size',
    'gridsize': 'grid_size',
    'size': 'image_size',
    'seed': 'seed',
    'input': 'input_file',
    'jitter': 'jitter',
    'stages': 'stage_count',
    'stage_dir': 'stage_dir',
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pseudo-erosion",
        description="Generate a grayscale heightmap from simulated drainage patterns.",
    )
    parser.add_argument("--featuresize", type=int, help=f"Pixels per noise unit (default {DEFAULTS.DEFAULT_FEATURE_SIZE}).")
    parser.add_argument("--gridsize", type=int, help=f"Base drainage grid density (default {DEFAULTS.DEFAULT_GRID_SIZE}).")
    parser.add_argument("--size", type=int, help=f"Output image side in pixels (default {DEFAULTS.DEFAULT_IMAGE_SIZE}).")
    parser.add_argument("--seed", type=int, help=f"Noise seed (default {DEFAULTS.DEFAULT_SEED}).")
    parser.add_argument("--outputfile", type=str, help=f"Output PNG path (default '{DEFAULTS.DEFAULT_OUTPUT_FILE}').")
    parser.add_argument("--input", type=str, help="Use this image as the first pass instead of generating it.")
    parser.add_argument("--config", type=str, help="JSON file of settings. Command-line flags take precedence.")
    parser.add_argument("--jitter", choices=DEFAULTS.JITTER_MODES, help="Site displacement strategy.")
    parser.add_argument("--stages", type=int, help=f"Number of passes to run, 1-{DEFAULTS.MAX_STAGES}.")
    parser.add_argument("--stage-dir", dest="stage_dir", type=str, help="Also save every pass image in this directory.")
    parser.add_argument("--noise-only", action="store_true", help="Write the raw noise image and skip erosion.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def load_config_file(config_path: str) -> dict:
    """Reads a JSON settings file into a dict."""
    try:
        with open(config_path, 'r') as f:
            config = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to load or parse config file: {e}") from e
    if not isinstance(config, dict):
        raise ConfigError(f"Config file '{config_path}' must contain a JSON object")
    return config


def build_config(args: argparse.Namespace) -> dict:
    """Merges defaults-overriding settings: JSON file first, then flags."""
    config = load_config_file(args.config) if args.config else {}
    for flag, key in _FLAG_SETTINGS.items():
        value = getattr(args, flag)
        if value is not None:
            config[key] = value
    if args.outputfile is not None:
        config['output_file'] = args.outputfile
    config.setdefault('output_file', DEFAULTS.DEFAULT_OUTPUT_FILE)
    config['show_progress'] = True
    return config


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # 1. --- Setup Logging ---
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        stream=sys.stdout
    )
    logger = logging.getLogger("PseudoErosion")

    try:
        # 2. --- Load Configuration ---
        config = build_config(args)
        output_file = config['output_file']
        pipeline = ErosionPipeline(config=config, logger=logger)

        # 3. --- Generate ---
        size = pipeline.image_size
        logger.info(f"Generating {size} x {size} heightmap image '{output_file}'")
        try:
            if args.noise_only:
                pixels = pipeline.generate_initial_noise()
            else:
                pixels = pipeline.run()
        finally:
            pipeline.close()
    except (ConfigError, ImageFormatError, OSError) as e:
        logger.critical(f"{e}")
        return 1

    # 4. --- Save ---
    try:
        image_io.write_image(output_file, pixels, size, size, 4, True)
    except OSError as e:
        logger.critical(f"Failed to write '{output_file}': {e}")
        return 1
    logger.info(f"Heightmap saved to: {output_file}")
    return 0


# --- Command-Line Interface ---
if __name__ == "__main__":
    sys.exit(main())
