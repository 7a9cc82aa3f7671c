"""Pure planning functions over discovered and applied identifiers.

``all_units`` is always the ascending identifier list produced by discovery;
``applied`` is the ledger snapshot. Nothing here touches storage.
"""

from collections.abc import Collection, Sequence


def compute_pending(all_units: Sequence[str], applied: Collection[str]) -> list[str]:
    """Every unit not yet applied, in ascending order."""
    applied = set(applied)
    return [identifier for identifier in all_units if identifier not in applied]


def compute_latest_contiguous_pending(
    all_units: Sequence[str], applied: Collection[str]
) -> list[str]:
    """The unbroken run of unapplied units at the newest end of the list.

    Scanning stops at the newest applied unit, so an older unit that was
    deliberately skipped is only picked up by ``compute_pending``.
    """
    applied = set(applied)
    run = []
    for identifier in reversed(all_units):
        if identifier in applied:
            break
        run.append(identifier)
    run.reverse()
    return run


def compute_applied(all_units: Sequence[str], applied: Collection[str]) -> list[str]:
    """Discovered units that are applied, in ascending order."""
    applied = set(applied)
    return [identifier for identifier in all_units if identifier in applied]


def find_orphans(all_units: Sequence[str], applied: Collection[str]) -> list[str]:
    """Ledger entries without a discovered unit, sorted."""
    return sorted(set(applied) - set(all_units))
