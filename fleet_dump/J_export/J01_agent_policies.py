# fleet_dump/J_export/J01_agent_policies.py
"""
Agent policy dumper.

Exports agent policies from the Fleet API to ``<output_dir>/agent_policies/``:
- a single policy, selected when the dumper is built
- every policy
- only the policies whose package policies use a given package

Each export call fetches its own copy of the policies and keeps nothing on the
dumper, so repeated calls never see stale data. Documents are decoded before
anything is written: a malformed document aborts the export with ParseError
and no files. A write failure stops the export at that policy; files written
before it stay on disk.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, Union

from pydantic import ValidationError

from fleet_dump.A_core.A00_logging import get_logger
from fleet_dump.A_core.A01_policy_models import (
    AgentPolicy,
    PackagePolicyRef,
    PolicyEnvelope,
    RawDocument,
)
from fleet_dump.A_core.A02_exceptions import (
    ConfigurationError,
    FetchError,
    ParseError,
    WriteError,
)
from fleet_dump.Z_utils.Z02_object_writer import dump_installed_object

logger = get_logger(__name__)

AGENT_POLICIES_DUMP_DIR = "agent_policies"

ObjectWriter = Callable[[Path, AgentPolicy], object]


class PolicySource(Protocol):
    """The two Fleet calls the dumper needs (see FleetClient)."""

    def get_raw_policy(self, policy_id: str) -> RawDocument: ...

    def list_raw_policies(self) -> Sequence[RawDocument]: ...


# =============================================================================
# DECODING AND FILTERING
# =============================================================================


def _as_bytes(raw: RawDocument) -> bytes:
    return raw.encode("utf-8") if isinstance(raw, str) else bytes(raw)


def decode_envelope(raw: RawDocument, index: Optional[int] = None) -> PolicyEnvelope:
    """
    Decode the id and package policies of one raw document.

    Raises:
        ParseError: If the document is not JSON or has no string ``id``.
    """
    try:
        return PolicyEnvelope.model_validate_json(raw)
    except ValidationError as e:
        raise ParseError(f"failed to get Agent Policy ID: {e}", document_index=index) from e


def decode_policy(raw: RawDocument, index: Optional[int] = None) -> AgentPolicy:
    """Decode a raw document into a dumpable policy named by its id."""
    envelope = decode_envelope(raw, index)
    return AgentPolicy(name=envelope.id, raw=_as_bytes(raw))


def decode_policies(raw_documents: Iterable[RawDocument]) -> List[AgentPolicy]:
    """Decode every document, failing on the first malformed one."""
    return [decode_policy(raw, i) for i, raw in enumerate(raw_documents)]


def get_packages_using_agent_policy(package_policies: Iterable[PackagePolicyRef]) -> List[str]:
    """Package names referenced by a list of package policies."""
    return [pp.package.name for pp in package_policies]


def filter_by_package(raw_documents: Iterable[RawDocument], package_name: str) -> List[AgentPolicy]:
    """
    Keep the documents that have a package policy for ``package_name``.

    Matching is an exact comparison against each package policy's
    ``package.name``.

    Raises:
        ParseError: On the first malformed document.
    """
    matched = []
    for i, raw in enumerate(raw_documents):
        envelope = decode_envelope(raw, i)
        if package_name not in get_packages_using_agent_policy(envelope.package_policies):
            continue
        matched.append(AgentPolicy(name=envelope.id, raw=_as_bytes(raw)))
    return matched


# =============================================================================
# DUMPER
# =============================================================================


class AgentPoliciesDumper:
    """
    Dumps agent policies fetched from Fleet to a local directory.

    Attributes:
        name: Agent policy id for dump_agent_policy, or None.
    """

    def __init__(
        self,
        client: PolicySource,
        agent_policy: Optional[str] = None,
        writer: ObjectWriter = dump_installed_object,
    ):
        """
        Args:
            client: Source of raw policy documents (a FleetClient).
            agent_policy: Id of the policy dumped by dump_agent_policy.
            writer: Function writing one object into a directory.
        """
        self._client = client
        self._name = agent_policy
        self._writer = writer

    @property
    def name(self) -> Optional[str]:
        return self._name

    def _get_agent_policy(self) -> AgentPolicy:
        if self._name is None:
            raise ConfigurationError("No agent policy selected for dump", config_key="agent_policy")
        try:
            raw = self._client.get_raw_policy(self._name)
        except FetchError as e:
            raise FetchError(
                f"failed to get agent policy: {e.message}",
                status_code=e.status_code,
                url=e.url,
            ) from e
        return AgentPolicy(name=self._name, raw=_as_bytes(raw))

    def _list_raw_policies(self) -> Sequence[RawDocument]:
        try:
            return self._client.list_raw_policies()
        except FetchError as e:
            raise FetchError(
                f"failed to get agent policy: {e.message}",
                status_code=e.status_code,
                url=e.url,
            ) from e

    def _write(self, output_dir: Union[str, Path], policies: Sequence[AgentPolicy]) -> int:
        target = Path(output_dir) / AGENT_POLICIES_DUMP_DIR
        for policy in policies:
            try:
                self._writer(target, policy)
            except (WriteError, OSError) as e:
                message = e.message if isinstance(e, WriteError) else str(e)
                file_path = e.file_path if isinstance(e, WriteError) else None
                raise WriteError(
                    f"failed to dump agent policy {policy.name}: {message}",
                    file_path=file_path,
                    policy_name=policy.name,
                ) from e
            logger.debug(f"Dumped agent policy {policy.name}")
        return len(policies)

    def dump_agent_policy(self, output_dir: Union[str, Path]) -> None:
        """
        Dump the selected agent policy to ``<output_dir>/agent_policies/``.

        Raises:
            ConfigurationError: If no agent policy was selected.
            FetchError: If the policy cannot be fetched.
            WriteError: If the policy cannot be written.
        """
        policy = self._get_agent_policy()
        self._write(output_dir, [policy])
        logger.info(f"Dumped agent policy {policy.name}")

    def dump_all(self, output_dir: Union[str, Path]) -> int:
        """
        Dump every agent policy to ``<output_dir>/agent_policies/``.

        Returns:
            Number of policies written.
        """
        policies = decode_policies(self._list_raw_policies())
        count = self._write(output_dir, policies)
        logger.info(f"Dumped {count} agent policies")
        return count

    def dump_agent_policies_filtered_by_package(
        self,
        output_dir: Union[str, Path],
        package_name: str,
    ) -> int:
        """
        Dump the agent policies that use ``package_name``.

        Returns:
            Number of policies written.
        """
        policies = filter_by_package(self._list_raw_policies(), package_name)
        count = self._write(output_dir, policies)
        logger.info(f"Dumped {count} agent policies using package {package_name}")
        return count
