from dataclasses import dataclass, asdict
from enum import Enum
from typing import Iterable, Optional


class RenewalStatus(str, Enum):
    RENEWED = "renewed"
    NOT_RENEWED = "not-renewed"
    UPCOMING = "upcoming-renewal"
    UNKNOWN = "unknown"


def _pct(part: int, total: int) -> float:
    return part / total * 100 if total > 0 else 0.0


@dataclass(frozen=True)
class RenewalRollup:
    """
    Renewal lifecycle counts for one group of records.
    """

    total: int = 0
    upcoming_count: int = 0
    renewed_count: int = 0
    not_renewed_count: int = 0
    unknown_count: int = 0

    upcoming_premium: float = 0.0
    renewed_premium: float = 0.0
    not_renewed_premium: float = 0.0

    upcoming_pct: float = 0.0
    renewed_pct: float = 0.0
    not_renewed_pct: float = 0.0

    @classmethod
    def from_statuses(
        cls,
        statuses: Iterable[RenewalStatus],
        premiums: Optional[Iterable[float]] = None,
    ) -> "RenewalRollup":
        statuses = [RenewalStatus(s) for s in statuses]
        premiums = list(premiums) if premiums is not None else [0.0] * len(statuses)

        counts = {s: 0 for s in RenewalStatus}
        prem = {s: 0.0 for s in RenewalStatus}
        for s, p in zip(statuses, premiums):
            counts[s] += 1
            prem[s] += float(p or 0.0)

        total = len(statuses)
        return cls(
            total=total,
            upcoming_count=counts[RenewalStatus.UPCOMING],
            renewed_count=counts[RenewalStatus.RENEWED],
            not_renewed_count=counts[RenewalStatus.NOT_RENEWED],
            unknown_count=counts[RenewalStatus.UNKNOWN],
            upcoming_premium=prem[RenewalStatus.UPCOMING],
            renewed_premium=prem[RenewalStatus.RENEWED],
            not_renewed_premium=prem[RenewalStatus.NOT_RENEWED],
            upcoming_pct=_pct(counts[RenewalStatus.UPCOMING], total),
            renewed_pct=_pct(counts[RenewalStatus.RENEWED], total),
            not_renewed_pct=_pct(counts[RenewalStatus.NOT_RENEWED], total),
        )

    def to_dict(self) -> dict:
        return asdict(self)
