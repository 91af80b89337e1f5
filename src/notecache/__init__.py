"""
notecache - a personal note index for the command line.

Notes are small metadata records (title, tags and the path of an external
body document) kept in a single local cache file. The cache is read and
written as a whole on every operation.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("notecache")
except PackageNotFoundError:
    __version__ = "0.3.0"
