"""
Fleet Dump - v1.0
Exports agent policies from the Fleet API to local JSON files

    from fleet_dump import AgentPoliciesDumper, FleetClient, load_config

    config = load_config()
    with FleetClient.from_config(config) as client:
        AgentPoliciesDumper(client).dump_all(config.output_dir)
"""

__version__ = "1.0.0"

from .G_config import DumpConfig, load_config
from .J_export import AgentPoliciesDumper
from .Z_utils import FleetClient

__all__ = ["AgentPoliciesDumper", "DumpConfig", "FleetClient", "load_config"]
