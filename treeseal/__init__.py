"""treeseal - tamper-evident file integrity manifests for project trees."""

__version__ = "0.1.0"
