"""
Loading Meter Configuration

RoRo decks are sold per loading meter (LM): one meter of deck length on a
standard 2.5 m lane.

    base_lm = (length_m * max(width_m, 2.5)) / 2.5

Cargo narrower than the lane still occupies the full lane, so width is
clamped up to the standard lane width before the division.

Overwidth cargo can be repriced by an OVERWIDTH_LM_RECALC transform rule:

    chargeable_lm = (length_cm * width_cm) / (divisor_cm * 100)
"""

STANDARD_LANE_WIDTH_CM = 250  # Standard RoRo lane
LM_LANE_WIDTH_M = 2.5         # 1 LM = 1 m x 2.5 m of deck

# cm x cm -> LM in a single division (25,000)
CM2_PER_LM = int(100 * 100 * LM_LANE_WIDTH_M)
