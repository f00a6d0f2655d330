"""cachedetect — find, classify and remove cache files under a directory tree."""

__version__ = "0.1.0"
