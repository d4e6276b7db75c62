from dataclasses import dataclass, asdict
from typing import Iterable


def _ratio_pct(numerator: float, premium: float) -> float:
    if premium > 0:
        return numerator / premium * 100
    return 0.0


@dataclass(frozen=True)
class KPISet:
    """
    Underwriting KPIs for one record collection.

    Raw components are sums; ratios are percentages of premium and are 0
    whenever premium is 0. combined_ratio_pct is always the sum of the two
    displayed ratios.
    """

    premium: float = 0.0
    paid_claims: float = 0.0
    outstanding_claims: float = 0.0
    incurred_claims: float = 0.0
    expense: float = 0.0
    number_of_accounts: int = 0
    max_liability_total: float = 0.0

    avg_max_liability: float = 0.0
    loss_ratio_pct: float = 0.0
    expense_ratio_pct: float = 0.0
    combined_ratio_pct: float = 0.0
    technical_result: float = 0.0

    @classmethod
    def from_components(
        cls,
        premium: float = 0.0,
        paid_claims: float = 0.0,
        outstanding_claims: float = 0.0,
        incurred_claims: float = 0.0,
        expense: float = 0.0,
        number_of_accounts: int = 0,
        max_liability_total: float = 0.0,
    ) -> "KPISet":
        loss_ratio = _ratio_pct(incurred_claims, premium)
        expense_ratio = _ratio_pct(expense, premium)
        avg_ml = max_liability_total / number_of_accounts if number_of_accounts > 0 else 0.0

        return cls(
            premium=float(premium),
            paid_claims=float(paid_claims),
            outstanding_claims=float(outstanding_claims),
            incurred_claims=float(incurred_claims),
            expense=float(expense),
            number_of_accounts=int(number_of_accounts),
            max_liability_total=float(max_liability_total),
            avg_max_liability=float(avg_ml),
            loss_ratio_pct=float(loss_ratio),
            expense_ratio_pct=float(expense_ratio),
            combined_ratio_pct=float(loss_ratio + expense_ratio),
            technical_result=float(premium - incurred_claims - expense),
        )

    @classmethod
    def combine(cls, items: Iterable["KPISet"]) -> "KPISet":
        """Sum raw components and recompute ratios from the sums."""
        items = list(items)
        return cls.from_components(
            premium=sum(k.premium for k in items),
            paid_claims=sum(k.paid_claims for k in items),
            outstanding_claims=sum(k.outstanding_claims for k in items),
            incurred_claims=sum(k.incurred_claims for k in items),
            expense=sum(k.expense for k in items),
            number_of_accounts=sum(k.number_of_accounts for k in items),
            max_liability_total=sum(k.max_liability_total for k in items),
        )

    def to_dict(self) -> dict:
        return asdict(self)
