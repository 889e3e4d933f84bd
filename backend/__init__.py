"""fuse-extractor backend: keyword normalization service."""
