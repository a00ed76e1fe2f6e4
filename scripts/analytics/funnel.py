"""
Conversion funnel: dials → answered → DM conversations → SQLs.
"""
from __future__ import annotations

from typing import List

from models.metric_models import FunnelStage
from scripts.analytics.rates import rate

STAGE_NAMES = ("Dials", "Answered", "DM Conversations", "SQLs")


def build_funnel(dials: int, answered: int, dm_conversations: int, sqls: int) -> List[FunnelStage]:
    """
    Arrange the four stages with percentage-of-previous and percentage-of-total.

    The first stage has no previous stage, so its pct_of_previous is None.
    A funnel with zero dials is fully defined: every percentage is 0.
    """
    counts = [dials or 0, answered or 0, dm_conversations or 0, sqls or 0]
    stages = []
    for index, (name, count) in enumerate(zip(STAGE_NAMES, counts)):
        stages.append(FunnelStage(
            name=name,
            count=count,
            pct_of_previous=None if index == 0 else rate(count, counts[index - 1]),
            pct_of_total=rate(count, counts[0]),
        ))
    return stages


def funnel_from_totals(totals: dict) -> List[FunnelStage]:
    """Funnel from an aggregate()/event_counters() result."""
    return build_funnel(
        totals.get("dials", 0),
        totals.get("answered", 0),
        totals.get("dms_reached", 0),
        totals.get("sqls", 0),
    )
