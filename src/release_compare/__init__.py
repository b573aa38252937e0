"""Release Compare — line-count deltas across the releases of an npm package.

Fetches every GitHub release between two tags, downloads the matching
tarballs from the npm registry and reports how lines and files evolve.
"""

__version__ = "1.1.0"
