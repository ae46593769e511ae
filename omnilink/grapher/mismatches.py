"""Field-level contract mismatches derived from non-exact bridges."""

from __future__ import annotations

from typing import Dict, List, Sequence

from ..models import ApiBridge, MismatchRecord, MismatchSide, RepoManifest
from .api_contracts import MATCH_EXACT, MATCH_MISMATCH, find_type


def find_contract_mismatches(
    bridges: Sequence[ApiBridge], manifests: Sequence[RepoManifest]
) -> List[MismatchRecord]:
    """Derive mismatch records from every resolved, non-exact bridge.

    Consumer fields the provider lacks are breaking ``extra-field`` records.
    For outright mismatches, provider fields the consumer ignores are also
    reported as informational ``missing-field`` records.
    """
    by_repo: Dict[str, RepoManifest] = {manifest.repo_id: manifest for manifest in manifests}
    records: List[MismatchRecord] = []

    for bridge in bridges:
        contract = bridge.contract
        if contract.match_status == MATCH_EXACT or not contract.resolved:
            continue
        consumer_manifest = by_repo.get(bridge.consumer.repo)
        if consumer_manifest is None:
            continue
        provider_type = contract.output_type
        consumer_type = find_type(consumer_manifest, provider_type.name)
        if consumer_type is None:
            continue

        provider_fields = provider_type.field_names()
        consumer_fields = consumer_type.field_names()

        for item in consumer_type.fields:
            if item.name in provider_fields:
                continue
            records.append(
                MismatchRecord(
                    kind="extra-field",
                    description=(
                        f"Consumer {bridge.consumer.repo} expects field '{item.name}' on "
                        f"{provider_type.name} which provider {bridge.provider.repo} does not provide"
                    ),
                    provider=MismatchSide(
                        repo=bridge.provider.repo,
                        file=provider_type.source.file,
                        line=provider_type.source.line,
                        field=item.name,
                    ),
                    consumer=MismatchSide(
                        repo=bridge.consumer.repo,
                        file=consumer_type.source.file,
                        line=consumer_type.source.line,
                        field=item.name,
                    ),
                    severity="breaking",
                )
            )

        if contract.match_status != MATCH_MISMATCH:
            continue
        for item in provider_type.fields:
            if item.name in consumer_fields:
                continue
            records.append(
                MismatchRecord(
                    kind="missing-field",
                    description=(
                        f"Consumer {bridge.consumer.repo} does not use field '{item.name}' from "
                        f"{provider_type.name} provided by {bridge.provider.repo}"
                    ),
                    provider=MismatchSide(
                        repo=bridge.provider.repo,
                        file=provider_type.source.file,
                        line=provider_type.source.line,
                        field=item.name,
                    ),
                    consumer=MismatchSide(
                        repo=bridge.consumer.repo,
                        file=consumer_type.source.file,
                        line=consumer_type.source.line,
                    ),
                    severity="info",
                )
            )

    return records


__all__ = ["find_contract_mismatches"]
