# backend/services/state_machine.py
"""Status transitions of deployed equipment and the ledger effect of each.

Every category maps its statuses onto the stock bucket a unit occupies:

    assigned   the unit is charged to the stock item's assigned counter
    available  the unit went back to the available counter
    retired    the unit no longer exists in the stock item's total

A status mapped to ``None`` (the printer's ``out_of_toner``) leaves the unit
where it already is. The ledger effect of a transition is therefore decided
by the pair (bucket before, bucket after), which keeps one table for all six
categories.
"""
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from services.errors import InvalidTransition

ASSIGNED = "assigned"
AVAILABLE = "available"
RETIRED = "retired"

RESERVE = "reserve"
RELEASE = "release"
RETIRE = "retire"
RESTORE = "restore"


@dataclass(frozen=True)
class LedgerEffect:
    op: str
    # Bucket the unit leaves (retire) or enters (restore)
    bucket: Optional[str] = None
    qty: int = 1


@dataclass(frozen=True)
class Transition:
    from_status: Optional[str]
    to_status: str
    effect: Optional[LedgerEffect]
    bucket: str

    @property
    def is_noop(self) -> bool:
        return self.effect is None


_EFFECTS: Dict[Tuple[str, str], LedgerEffect] = {
    (ASSIGNED, AVAILABLE): LedgerEffect(RELEASE),
    (AVAILABLE, ASSIGNED): LedgerEffect(RESERVE),
    (ASSIGNED, RETIRED): LedgerEffect(RETIRE, ASSIGNED),
    (AVAILABLE, RETIRED): LedgerEffect(RETIRE, AVAILABLE),
    # Resurrecting a retired unit re-creates it; no availability check
    (RETIRED, ASSIGNED): LedgerEffect(RESTORE, ASSIGNED),
    (RETIRED, AVAILABLE): LedgerEffect(RESTORE, AVAILABLE),
}


class StatusMachine:
    def __init__(
        self,
        buckets: Dict[str, Optional[str]],
        initial: Iterable[str] = ("active",),
        forbidden: Iterable[Tuple[str, str]] = (),
    ):
        self.buckets = dict(buckets)
        self.initial: FrozenSet[str] = frozenset(initial)
        self.forbidden: FrozenSet[Tuple[str, str]] = frozenset(forbidden)

    @property
    def statuses(self) -> Tuple[str, ...]:
        return tuple(self.buckets)

    def validate(self, status: str, from_status: Optional[str] = None) -> str:
        if status not in self.buckets:
            raise InvalidTransition(from_status, status, "unknown status")
        return status

    def initial_bucket(self, status: str) -> str:
        """Bucket of a freshly created unit; creation always reserves one unit."""
        self.validate(status)
        if status not in self.initial:
            raise InvalidTransition(None, status, f"new units start as one of {sorted(self.initial)}")
        return ASSIGNED

    def plan(self, from_status: str, to_status: str, current_bucket: Optional[str] = None) -> Transition:
        self.validate(to_status, from_status)
        if current_bucket is None:
            current_bucket = self.buckets.get(from_status) or ASSIGNED

        if from_status == to_status:
            return Transition(from_status, to_status, None, current_bucket)
        if (from_status, to_status) in self.forbidden:
            raise InvalidTransition(from_status, to_status)

        target = self.buckets[to_status]
        if target is None:
            # Ledger-neutral status; a retired unit cannot take it
            if current_bucket == RETIRED:
                raise InvalidTransition(from_status, to_status, "unit is retired")
            return Transition(from_status, to_status, None, current_bucket)

        if target == current_bucket:
            return Transition(from_status, to_status, None, current_bucket)
        return Transition(from_status, to_status, _EFFECTS[(current_bucket, target)], target)


# DVR, Mikrotik, Server
GENERIC_MACHINE = StatusMachine({
    "active": ASSIGNED,
    "inactive": AVAILABLE,
    "maintenance": AVAILABLE,
    "decommissioned": RETIRED,
})

PRINTER_MACHINE = StatusMachine(
    {
        "active": ASSIGNED,
        "inactive": AVAILABLE,
        "maintenance": AVAILABLE,
        "obsolete": RETIRED,
        "out_of_toner": None,
    },
    initial=("active", "out_of_toner"),
)

# AssignedEquipment, Telephone
ASSIGNMENT_MACHINE = StatusMachine(
    {
        "active": ASSIGNED,
        "returned": AVAILABLE,
        "obsolete": RETIRED,
    },
    forbidden=[("obsolete", "returned")],
)
