"""
A_core: Domain models, exceptions and logging for fleet_dump.

- Agent policy models (AgentPolicy, PolicyEnvelope, PackagePolicyRef)
- Exception hierarchy (FetchError, ParseError, WriteError)
- Centralized logging (get_logger, configure_logging, LogContext)
"""
