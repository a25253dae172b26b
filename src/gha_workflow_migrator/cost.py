"""
Rough monthly savings estimate for moving workflows off GitHub-hosted runners.

This is an order-of-magnitude heuristic (a fixed number of minutes per
workflow at the Linux per-minute rate), not a billing computation.
"""

from __future__ import annotations

from decimal import ROUND_FLOOR, Decimal
from typing import Final

from .models import CostEstimate

MINUTES_PER_WORKFLOW_PER_MONTH: Final = 100
PER_MINUTE_RATE_USD: Final = Decimal("0.008")


def estimate(github_hosted_count: int) -> CostEstimate:
    """Estimate monthly savings for a number of GitHub-hosted workflows."""
    estimated_minutes = github_hosted_count * MINUTES_PER_WORKFLOW_PER_MONTH
    savings = (Decimal(estimated_minutes) * PER_MINUTE_RATE_USD).to_integral_value(rounding=ROUND_FLOOR)
    return CostEstimate(
        github_hosted_count=github_hosted_count,
        estimated_minutes=estimated_minutes,
        monthly_savings_usd=int(savings),
        per_minute_rate_usd=PER_MINUTE_RATE_USD,
    )
