"""nucleoprofile Validate — dataset-wide segmentation checks."""

from nucleoprofile.validate.validator import DatasetValidator

__all__ = ["DatasetValidator"]
