# fleet_dump/A_core/A01_policy_models.py
"""
Domain models for Fleet agent policies.

An agent policy is kept as the raw JSON document returned by the Fleet API,
paired with the identifier used to name its dump file. Only the fields needed
to name and filter policies are decoded; everything else stays opaque.

Key Components:
    - AgentPolicy: raw document + name, the unit handed to the object writer
    - PackageRef: package descriptor of a package policy (name, title, version)
    - PackagePolicyRef: package policy attached to an agent policy
    - PolicyEnvelope: typed partial decode (id + package policies)

Example:
    >>> envelope = PolicyEnvelope.model_validate_json(b'{"id": "p1"}')
    >>> envelope.id
    'p1'
    >>> envelope.package_policies
    []
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

RawDocument = Union[bytes, str]


def _drop_nulls(data: Any) -> Any:
    """Treat explicit JSON nulls as absent fields."""
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if v is not None}
    return data


@dataclass(frozen=True)
class AgentPolicy:
    """
    A dumpable agent policy.

    Attributes:
        name: Identifier of the policy (its ``id``), used as the file name.
        raw: The JSON document exactly as returned by the Fleet API.
    """

    name: str
    raw: bytes

    def json(self) -> bytes:
        """Raw JSON document."""
        return self.raw


class PackageRef(BaseModel):
    """Integration package referenced by a package policy."""

    name: str = ""
    title: str = ""
    version: str = ""

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _ignore_nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)


class PackagePolicyRef(BaseModel):
    """Package policy entry of an agent policy (``package_policies[]``)."""

    id: str = ""
    name: str = ""
    package: PackageRef = Field(default_factory=PackageRef)

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _ignore_nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)


class PolicyEnvelope(BaseModel):
    """
    Typed partial decode of an agent policy document.

    ``id`` is required; ``package_policies`` defaults to an empty list
    (policies listed without ``full=true`` carry none).
    """

    id: str
    package_policies: List[PackagePolicyRef] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _ignore_nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)
