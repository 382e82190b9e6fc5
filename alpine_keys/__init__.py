"""alpine_keys - API key lifecycle, masking and verification."""

__version__ = "0.1.0"
