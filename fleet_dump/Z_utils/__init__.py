"""
Z_utils: Fleet API client and file output helpers.
"""

from .Z01_fleet_client import FleetClient
from .Z02_object_writer import dump_installed_object

__all__ = [
    "FleetClient",
    "dump_installed_object",
]
