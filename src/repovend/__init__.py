"""
repovend - pin and restore vendored repositories

Records the origin and revision of every git or Mercurial checkout below a
project directory into a JSON snapshot, and restores those checkouts from it.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
