"""
Barndo Estimator - Post Calculation

Gable/eave post counts, lengths and the required post size for a structure.
"""
import logging
import math
from dataclasses import dataclass

from barndo.domain.models import CatalogItem, ResolvedStructure

logger = logging.getLogger(__name__)

DEFAULT_POST_SIZE = "3ply_2x6"
POST_SPACING = 8
GABLE_EXTRA_LENGTH = 6
EAVE_EXTRA_LENGTH = 4

CHART_HEIGHTS = (12, 14, 16, 18, 20, 22, 24)
CHART_WIDTHS = (40, 50, 60, 70, 80)

# [wall height][building width] -> post size
POST_SIZE_CHART: dict[int, dict[int, str]] = {
    12: {40: "3ply_2x6", 50: "3ply_2x6", 60: "3ply_2x6", 70: "3ply_2x8", 80: "3ply_2x8"},
    14: {40: "3ply_2x6", 50: "3ply_2x6", 60: "3ply_2x8", 70: "3ply_2x8", 80: "4ply_2x6"},
    16: {40: "3ply_2x6", 50: "3ply_2x8", 60: "3ply_2x8", 70: "4ply_2x6", 80: "4ply_2x6"},
    18: {40: "3ply_2x8", 50: "3ply_2x8", 60: "4ply_2x6", 70: "4ply_2x6", 80: "4ply_2x8"},
    20: {40: "3ply_2x8", 50: "4ply_2x6", 60: "4ply_2x6", 70: "4ply_2x8", 80: "4ply_2x8"},
    22: {40: "4ply_2x6", 50: "4ply_2x6", 60: "4ply_2x8", 70: "4ply_2x8", 80: "4ply_2x8"},
    24: {40: "4ply_2x6", 50: "4ply_2x8", 60: "4ply_2x8", 70: "4ply_2x8", 80: "4ply_2x8"},
}


@dataclass(frozen=True)
class PostBreakdown:
    """Post counts and linear feet for one structure."""

    gable_post_heights: tuple[int, ...]  # one gable, interior posts
    gable_post_total: int
    gable_post_total_lf: int
    eave_post_length: int
    eave_post_total: int
    eave_post_total_lf: int
    required_post_size: str

    @property
    def all_post_total(self) -> int:
        return self.gable_post_total + self.eave_post_total

    @property
    def all_post_total_lf(self) -> int:
        return self.gable_post_total_lf + self.eave_post_total_lf

    @property
    def is_upgrade(self) -> bool:
        return self.required_post_size != DEFAULT_POST_SIZE

    @property
    def gable_breakdown(self) -> str:
        """e.g. "x2 18', x4 20'" across both gables."""
        counts: dict[int, int] = {}
        for height in self.gable_post_heights:
            counts[height] = counts.get(height, 0) + 1
        return ", ".join(f"x{qty * 2} {size}'" for size, qty in sorted(counts.items()))

    def describe(self) -> str:
        return "\n".join([
            f"Gable Posts: {self.gable_breakdown} ({self.gable_post_total_lf} LF)",
            f"Eave Posts: x{self.eave_post_total} {self.eave_post_length}' ({self.eave_post_total_lf} LF)",
            f"Total: {self.all_post_total} posts, {self.all_post_total_lf} LF",
            f"Required Size: {display_post_size(self.required_post_size)}",
        ])


def _round_up_even(value: float) -> int:
    return math.ceil(value / 2) * 2


def required_post_size(wall_height: float, building_width: float) -> str:
    """
    Look up the post size chart, rounding up to the next chart row/column.

    Heights above 24' use the 24' row; widths above 80' use the 80' column.
    """
    safe_height = next((h for h in CHART_HEIGHTS if h >= wall_height), CHART_HEIGHTS[-1])
    safe_width = next((w for w in CHART_WIDTHS if w >= building_width), CHART_WIDTHS[-1])
    return POST_SIZE_CHART[safe_height][safe_width]


def calculate_posts(structure: ResolvedStructure) -> PostBreakdown:
    """
    Calculate post requirements for a structure.

    Gable posts sit every 8' across the width; each is wall height plus the
    roof rise at its position plus 6' embedment, rounded up to an even
    length. Eave posts run the length at 8' max spacing on both sides.

    Args:
        structure: Resolved structure geometry

    Returns:
        PostBreakdown
    """
    width, length, height = structure.width, structure.length, structure.height
    pitch = structure.pitch.rise / 12

    positions = range(POST_SPACING, math.ceil(width), POST_SPACING)
    gable_heights = tuple(
        _round_up_even(height + abs(pos - width / 2) * pitch + GABLE_EXTRA_LENGTH)
        for pos in positions
        if pos < width
    )

    eave_post_length = _round_up_even(height + EAVE_EXTRA_LENGTH)
    eave_post_total = (math.ceil(length / POST_SPACING) + 1) * 2

    return PostBreakdown(
        gable_post_heights=gable_heights,
        gable_post_total=len(gable_heights) * 2,
        gable_post_total_lf=sum(gable_heights) * 2,
        eave_post_length=eave_post_length,
        eave_post_total=eave_post_total,
        eave_post_total_lf=eave_post_length * eave_post_total,
        required_post_size=required_post_size(height, width),
    )


def catalog_post_name(post_size: str) -> str:
    """'3ply_2x8' -> '3Ply 2x8' (catalog naming)."""
    plies, _, lumber = post_size.partition("_")
    return f"{plies.lower().replace('ply', 'Ply')} {lumber}".strip()


def display_post_size(post_size: str) -> str:
    """'3ply_2x8' -> '3PLY 2X8'."""
    return post_size.replace("_", " ", 1).upper()


def find_post_item(items: list[CatalogItem], post_size: str) -> CatalogItem | None:
    """
    Find the per-linear-foot upgrade price for a post size.

    Tagged items (kind 'post') are matched first, then the 'Posts' category
    by exact catalog name.
    """
    name = catalog_post_name(post_size)
    tagged = [item for item in items if item.kind == "post"]
    candidates = tagged or [item for item in items if item.category.lower() == "posts"]
    for item in candidates:
        if item.name == name or item.name.lower() == name.lower():
            return item
    logger.warning(f"Post upgrade item not found for size: {name}")
    return None
