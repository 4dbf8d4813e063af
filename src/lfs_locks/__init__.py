"""Client-side cache of Git LFS file locks."""

__version__ = "0.1.0"
