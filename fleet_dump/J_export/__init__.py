"""
J_export: Dumpers writing Fleet objects to disk.
"""

from .J01_agent_policies import (
    AGENT_POLICIES_DUMP_DIR,
    AgentPoliciesDumper,
    filter_by_package,
)

__all__ = [
    "AGENT_POLICIES_DUMP_DIR",
    "AgentPoliciesDumper",
    "filter_by_package",
]
