# fleet_dump/G_config/__init__.py
"""
Configuration module for fleet_dump.

Load configuration from config.yaml with environment overrides:

    from fleet_dump.G_config import load_config

    config = load_config()
    print(config.kibana_host)

Edit G_config/config.yaml or pass ``--config`` on the command line:

    fleet:
      kibana_host: https://127.0.0.1:5601
      timeout_seconds: 30
    dump:
      output_dir: package-dump
"""

from .dump_config import DumpConfig, load_config

__all__ = [
    "DumpConfig",
    "load_config",
]
