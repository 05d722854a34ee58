# tests/conftest.py
"""
Pytest configuration and fixtures for fleet_dump tests.

Provides:
- Sample agent policy documents as returned by the Fleet API
- A fake Fleet client serving canned raw documents
- A recording writer standing in for dump_installed_object
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pytest

from fleet_dump.A_core.A02_exceptions import FetchError


# =============================================================================
# SAMPLE DOCUMENTS
# =============================================================================


def make_policy(policy_id: str, *package_names: str, **extra: Any) -> Dict[str, Any]:
    """Build an agent policy document using the given packages."""
    doc = {
        "id": policy_id,
        "name": f"Policy {policy_id}",
        "namespace": "default",
        "package_policies": [
            {
                "id": f"{policy_id}-{name}",
                "name": f"{name}-1",
                "package": {"name": name, "title": name.title(), "version": "1.0.0"},
            }
            for name in package_names
        ],
    }
    doc.update(extra)
    return doc


def to_raw(doc: Any) -> bytes:
    return json.dumps(doc).encode("utf-8")


@pytest.fixture
def system_policy() -> Dict[str, Any]:
    return make_policy("p1", "system")


@pytest.fixture
def nginx_policy() -> Dict[str, Any]:
    return make_policy("p2", "nginx")


@pytest.fixture
def raw_policies(system_policy, nginx_policy) -> List[bytes]:
    """Three policies: system only, nginx only, and system + nginx."""
    return [
        to_raw(system_policy),
        to_raw(nginx_policy),
        to_raw(make_policy("p3", "system", "nginx")),
    ]


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================


class FakeFleetClient:
    """In-memory stand-in for FleetClient."""

    def __init__(
        self,
        policies: Optional[List[bytes]] = None,
        error: Optional[Exception] = None,
    ):
        self.policies = list(policies or [])
        self.error = error
        self.get_calls: List[str] = []
        self.list_calls = 0

    def get_raw_policy(self, policy_id: str) -> bytes:
        self.get_calls.append(policy_id)
        if self.error:
            raise self.error
        for raw in self.policies:
            if json.loads(raw).get("id") == policy_id:
                return raw
        raise FetchError("Unexpected response: not found", status_code=404)

    def list_raw_policies(self) -> List[bytes]:
        self.list_calls += 1
        if self.error:
            raise self.error
        return list(self.policies)

    def close(self) -> None:
        self.closed = True

    def __enter__(self) -> "FakeFleetClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class RecordingWriter:
    """Records (directory, name, raw) for every object written."""

    def __init__(self, fail_on: Optional[str] = None, error: Optional[Exception] = None):
        self.calls: List[Tuple[Path, str, bytes]] = []
        self.fail_on = fail_on
        self.error = error or OSError("disk full")

    def __call__(self, directory: Path, obj) -> Path:
        if obj.name == self.fail_on:
            raise self.error
        self.calls.append((Path(directory), obj.name, obj.json()))
        return Path(directory) / f"{obj.name}.json"

    @property
    def names(self) -> List[str]:
        return [name for _, name, _ in self.calls]


@pytest.fixture
def fake_client(raw_policies) -> FakeFleetClient:
    return FakeFleetClient(raw_policies)


@pytest.fixture
def recording_writer() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "dump"
