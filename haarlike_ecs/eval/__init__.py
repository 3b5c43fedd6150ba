from haarlike_ecs.eval.checks import (
    CatalogHistogram,
    check_bounds,
    check_duplicates,
    check_overlap,
    duplicate_index_pairs,
    histogram,
    out_of_bounds_indices,
    overlapping_indices,
    unnormalized_histograms,
)
from haarlike_ecs.eval.generate import (
    generate,
    generate_all,
    generate_catalog,
    place_rectangles,
)

__all__ = [
    "CatalogHistogram",
    "check_bounds",
    "check_duplicates",
    "check_overlap",
    "duplicate_index_pairs",
    "histogram",
    "out_of_bounds_indices",
    "overlapping_indices",
    "unnormalized_histograms",
    "generate",
    "generate_all",
    "generate_catalog",
    "place_rectangles",
]
