"""
Color ramps and fallback breaks for the density choropleths.

Each ramp runs lightest -> darkest. Index 0 is reserved for the zero/no-data
class; the remaining colors map to increasingly high-value classes.
"""

from typing import List

DEFAULT_NUM_CLASSES = 5

# Zero and missing values are drawn hollow (outline only), not with ramp[0]
TRANSPARENT = "transparent"

# Blue scale for farmer density
FARMER_COLORS: List[str] = [
    "#F7FBFF",  # zero values
    "#DEEBF7",
    "#C6DBEF",
    "#9ECAE1",
    "#6BAED6",
    "#4292C6",
    "#2171B5",
    "#084594",  # highest values
]

# Green scale for commodity density
COMMODITY_COLORS: List[str] = [
    "#F7FCF5",  # zero values
    "#E5F5E0",
    "#C7E9C0",
    "#A1D99B",
    "#74C476",
    "#41AB5D",
    "#238B45",
    "#005A32",  # highest values
]

# Used when a layer has no positive observations loaded
FARMER_FALLBACK_BREAKS: List[float] = [0, 1, 10, 20, 30, 40]
COMMODITY_FALLBACK_BREAKS: List[float] = [0, 1, 100, 200, 500, 1000]
