"""nucleoprofile Segment — template segmentation and per-profile segment fitting."""

from nucleoprofile.segment.fitter import FitterParams, IterativeSegmentFitter, SegmentFitter
from nucleoprofile.segment.profile_segmenter import ProfileSegmenter, SegmenterParams

__all__ = [
    "FitterParams",
    "IterativeSegmentFitter",
    "ProfileSegmenter",
    "SegmentFitter",
    "SegmenterParams",
]
