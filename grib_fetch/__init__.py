"""
grib-fetch: download selected GRIB records with concurrent HTTP range requests.
"""

__version__ = "0.1.0"
