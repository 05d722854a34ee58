# fleet_dump/A_core/A02_exceptions.py
"""
Exception hierarchy for fleet_dump.

Hierarchy:
    FleetDumpError (base)
    ├── ConfigurationError  # Invalid config, missing target policy
    ├── FetchError          # Fleet API request failed
    ├── ParseError          # Policy document is not valid JSON or lacks its id
    └── WriteError          # Writing a policy document to disk failed

Usage:
    from fleet_dump.A_core.A02_exceptions import FetchError, WriteError

    try:
        count = dumper.dump_all(output_dir)
    except FetchError as e:
        logger.error(f"Fleet API unavailable: {e.message}")
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class FleetDumpError(Exception):
    """
    Base exception for all fleet_dump errors.

    Attributes:
        message: Human-readable error description.
        context: Additional context data for debugging.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return error message with optional context."""
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class ConfigurationError(FleetDumpError):
    """
    Raised when configuration is invalid or incomplete.

    Examples:
        - Single-policy dump requested without a policy id
        - Non-positive timeout in config.yaml
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Optional[Any] = None,
    ):
        context = {}
        if config_key:
            context["key"] = config_key
        if actual_value is not None:
            context["actual"] = repr(actual_value)

        super().__init__(message, context)
        self.config_key = config_key
        self.actual_value = actual_value


class FetchError(FleetDumpError):
    """
    Raised when a Fleet API request fails.

    Examples:
        - Connection refused / timeout
        - HTTP 404 for an unknown agent policy
        - Response body is not the expected JSON envelope
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
    ):
        context: Dict[str, Any] = {}
        if status_code is not None:
            context["status"] = status_code
        if url:
            context["url"] = url

        super().__init__(message, context)
        self.status_code = status_code
        self.url = url


class ParseError(FleetDumpError):
    """Raised when a policy document is invalid JSON or has no usable id."""

    def __init__(
        self,
        message: str,
        document_index: Optional[int] = None,
    ):
        context = {}
        if document_index is not None:
            context["document"] = document_index

        super().__init__(message, context)
        self.document_index = document_index


class WriteError(FleetDumpError):
    """Raised when a policy document cannot be written to disk."""

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        policy_name: Optional[str] = None,
    ):
        context = {}
        if policy_name:
            context["policy"] = policy_name
        if file_path:
            context["file"] = file_path

        super().__init__(message, context)
        self.file_path = file_path
        self.policy_name = policy_name
