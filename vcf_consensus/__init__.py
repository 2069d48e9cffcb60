"""Per-sample consensus sequences from a multi-sample variant table."""

__version__ = "0.1.0"
