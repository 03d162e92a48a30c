"""nucleoprofile Profiling — outline tracing, population profiling and alignment."""

from nucleoprofile.profiling.median_finder import RepresentativeMedianFinder
from nucleoprofile.profiling.offsetter import OffsetResult, ProfileOffsetter
from nucleoprofile.profiling.outline import (
    angle_profile,
    calculate_profile,
    cells_from_labels,
    outlines_from_labels,
    radius_profile,
    resample_outline,
)
from nucleoprofile.profiling.profiling_method import (
    DatasetProfilingMethod,
    ProfilingParams,
    ProfilingResult,
)
from nucleoprofile.profiling.segmentation_method import (
    DatasetSegmentationMethod,
    SegmentationMode,
    SegmentationParams,
    SegmentationResult,
)

__all__ = [
    "angle_profile",
    "calculate_profile",
    "cells_from_labels",
    "DatasetProfilingMethod",
    "DatasetSegmentationMethod",
    "OffsetResult",
    "outlines_from_labels",
    "ProfileOffsetter",
    "ProfilingParams",
    "ProfilingResult",
    "radius_profile",
    "RepresentativeMedianFinder",
    "resample_outline",
    "SegmentationMode",
    "SegmentationParams",
    "SegmentationResult",
]
