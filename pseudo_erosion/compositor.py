# pseudo_erosion/compositor.py

"""
================================================================================
MULTIRESOLUTION COMPOSITOR
================================================================================
Combines the per-pass distance fields into one terrain texture. Each stage
folds one or more finer layers into a running accumulator with a fixed
nonlinear formula. Stages must be applied in order (2, 3, 4, 5), because
every stage reads the accumulator the previous one wrote.

Data Contract:
---------------
- blend_stage{2..5}: pure functions on decoded float heights (scalars or
  NumPy arrays), returning the new accumulator before quantisation.
- composite_stage(stage, accumulator, layers): decodes packed images, applies
  the stage formula, and re-encodes the result as packed pixels.
- Side Effects: None.
================================================================================
"""

import numpy as np

from . import codec
from . import config as DEFAULTS


def blend_stage2(a, b):
    """Halves the base layer and adds a quarter of the first feedback layer."""
    return DEFAULTS.STAGE2_ACCUMULATOR_WEIGHT * a + DEFAULTS.STAGE2_LAYER_WEIGHT * b


def blend_stage3(a, b):
    return a + b * b


def blend_stage4(a, b, c):
    return a + b * DEFAULTS.STAGE4_LAYER_WEIGHT * c


def blend_stage5(a, b, c, d):
    # b and c are distance-field heights, so their product is non-negative.
    return a + np.sqrt(b * c) * DEFAULTS.STAGE5_LAYER_WEIGHT * d


# Stage number -> (formula, number of layers it consumes besides the accumulator)
STAGE_BLENDS = {
    2: (blend_stage2, 1),
    3: (blend_stage3, 1),
    4: (blend_stage4, 2),
    5: (blend_stage5, 3),
}


def composite_stage(stage: int, accumulator: np.ndarray, layers) -> np.ndarray:
    """
    Applies one stage formula to packed images.

    Args:
        stage (int): Stage number, 2 to 5.
        accumulator (np.ndarray): Packed pixels of the running result.
        layers (sequence of np.ndarray): Packed pixels of the layers the stage
            reads, in formula order (e.g. pass 3, 4 and 5 images for stage 5).

    Returns:
        np.ndarray: The new accumulator as packed pixels.
    """
    if stage not in STAGE_BLENDS:
        raise ValueError(f"No composite formula for stage {stage}")
    blend, layer_count = STAGE_BLENDS[stage]
    if len(layers) != layer_count:
        raise ValueError(f"Stage {stage} expects {layer_count} layer(s), got {len(layers)}")

    decoded = [codec.decode_height(layer) for layer in layers]
    return codec.encode_height(blend(codec.decode_height(accumulator), *decoded))
