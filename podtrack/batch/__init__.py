"""File-level post-processing: dead air removal and mixdown export."""
