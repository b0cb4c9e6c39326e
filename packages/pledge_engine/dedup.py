"""Duplicate filtering for imported bank transactions.

The dedup key is the bank-assigned transaction reference. Rows without a
reference cannot be deduplicated and always pass through.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Set

from .normalizer import NormalizedTransaction


@dataclass
class DedupResult:
    to_insert: List[NormalizedTransaction] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)


def partition_duplicates(
    candidates: Iterable[NormalizedTransaction],
    existing_references: Iterable[str],
) -> DedupResult:
    """Split candidates into rows to insert and duplicate references.

    ``existing_references`` is the set of references persisted when the batch
    started. A reference repeated later in the same batch is also reported as
    a duplicate, so one upload never carries the same reference twice.
    """
    seen: Set[str] = {ref for ref in existing_references if ref}
    result = DedupResult()

    for candidate in candidates:
        reference = candidate.transaction_reference
        if not reference:
            result.to_insert.append(candidate)
            continue
        if reference in seen:
            result.duplicates.append(reference)
            continue
        seen.add(reference)
        result.to_insert.append(candidate)

    return result
