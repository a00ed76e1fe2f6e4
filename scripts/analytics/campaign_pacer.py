"""
Campaign pacer.

Combines the working-day calendar with a client's SQL target to answer
"how far through the campaign are we, in time and in SQLs, and how many SQLs
per working day are still needed".
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from models.metric_models import CampaignPacing
from models.record_models import CampaignWindow
from scripts.analytics.rates import rate
from scripts.analytics.working_days import clamp_to_range, count_working_days


def pace_campaign(
    window: CampaignWindow,
    achieved_sqls: int,
    today: date,
) -> Optional[CampaignPacing]:
    """
    Pacing figures for ``window`` as of ``today``.

    Returns None ("no campaign") when the start date, end date or target is
    missing. When no working days remain, the whole remaining SQL count is
    due now rather than spread over zero days.
    """
    if not window.is_defined:
        return None

    if isinstance(today, datetime):
        today = today.date()

    start, end, target = window.start_date, window.end_date, window.target_sqls
    achieved = achieved_sqls or 0

    total_working_days = count_working_days(start, end)
    effective_today = clamp_to_range(today, start, end)
    elapsed_working_days = count_working_days(start, effective_today)
    remaining_working_days = max(0, total_working_days - elapsed_working_days)

    remaining_sqls = max(0, target - achieved)
    sql_percentage = rate(achieved, target)
    time_percentage = rate(elapsed_working_days, total_working_days)

    if remaining_working_days > 0:
        required_daily_rate = remaining_sqls / remaining_working_days
    else:
        required_daily_rate = float(remaining_sqls)

    return CampaignPacing(
        client_id=window.client_id,
        campaign_start=start,
        campaign_end=end,
        target_sqls=target,
        achieved_sqls=achieved,
        remaining_sqls=remaining_sqls,
        sql_percentage=sql_percentage,
        total_working_days=total_working_days,
        elapsed_working_days=elapsed_working_days,
        remaining_working_days=remaining_working_days,
        time_percentage=time_percentage,
        required_daily_rate=required_daily_rate,
        on_track=sql_percentage >= time_percentage,
    )
