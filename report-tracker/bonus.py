# report-tracker/bonus.py
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

import config


@dataclass(frozen=True)
class BonusResult:
    percentage: float
    rate: int
    total: int
    tier: Optional[str]


def compute_bonus(scheduled: int, reported: int) -> BonusResult:
    """
    Maps a day's scheduled/reported counts to a bonus tier.
    The payout is the tier rate multiplied by the number of reported customers.
    """
    if scheduled < 0 or reported < 0:
        raise ValueError(f"Counts must be non-negative (scheduled={scheduled}, reported={reported}).")

    percentage = reported * 100 / scheduled if scheduled > 0 else 0.0

    tiers = sorted(config.BONUS_TIERS.items(), key=lambda item: item[1]["threshold"], reverse=True)
    for tier, tier_config in tiers:
        if percentage >= tier_config["threshold"]:
            return BonusResult(percentage, tier_config["rate"], tier_config["rate"] * reported, tier)

    return BonusResult(percentage, 0, 0, None)


def _aggregate(records) -> dict:
    total_scheduled = sum(r.scheduled_customers for r in records)
    total_reported = sum(r.reported_customers for r in records)
    total_bonus = sum(compute_bonus(r.scheduled_customers, r.reported_customers).total for r in records)
    average = total_reported * 100 / total_scheduled if total_scheduled > 0 else 0.0
    return {
        "totalScheduled": total_scheduled,
        "totalReported": total_reported,
        "averagePercentage": round(average, 1),
        "totalBonus": total_bonus,
    }


def summarize_records(records: Iterable) -> dict:
    """Dashboard totals across tracking records, overall and per month (newest month first)."""
    records = list(records)

    by_month = defaultdict(list)
    for record in records:
        by_month[record.date.strftime("%Y-%m")].append(record)

    months = [
        {"month": month_key, "days": len(month_records), **_aggregate(month_records)}
        for month_key, month_records in sorted(by_month.items(), reverse=True)
    ]
    return {**_aggregate(records), "months": months}
