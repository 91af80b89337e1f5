"""Storage layer for notecache: path handling, cache file, export files."""
