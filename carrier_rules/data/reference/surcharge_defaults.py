"""
Surcharge Parameter Defaults

Used when a rule's params blob leaves a field out. Values follow the
standard overwidth practice: charges start above the 2.5 m lane and are
counted in 25 cm blocks.
"""

from .loading_meter import STANDARD_LANE_WIDTH_CM

TRIGGER_WIDTH_GT_CM = STANDARD_LANE_WIDTH_CM
THRESHOLD_CM = STANDARD_LANE_WIDTH_CM
BLOCK_CM = 25
ROUNDING = "CEIL"
QTY_BASIS = "LM"

# OVERWIDTH_LM_RECALC
DIVISOR_CM = STANDARD_LANE_WIDTH_CM
