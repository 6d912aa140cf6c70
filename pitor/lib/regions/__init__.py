"""
Region directory

- catalog.py    compiled-in ISO 3166 table
- directory.py  Region, RegionDirectory, the default DIRECTORY
"""
from pitor.lib.regions.directory import (
    DIRECTORY,
    Region,
    RegionDirectory,
)

__all__ = ["DIRECTORY", "Region", "RegionDirectory"]
