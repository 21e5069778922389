"""
Equb business rules.

Pure functions over plain Supabase rows (dicts) so they can be shared by the
services and the activation loop without touching the database.
"""

import random
from datetime import date, timedelta
from typing import Iterable, List, Mapping, Optional, Sequence, TypeVar, Union

from dateutil.relativedelta import relativedelta

from app.modules.equbs.schemas import Cycle, EqubStatus

T = TypeVar("T")

APPROVED = "approved"


def _as_date(value: Union[str, date]) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def advance_due_date(current: Union[str, date], cycle: Union[str, Cycle]) -> date:
    """Move a due date forward by one cycle. Monthly steps clamp to month end (Jan 31 -> Feb 28)."""
    current = _as_date(current)
    cycle = Cycle(cycle)
    if cycle == Cycle.DAILY:
        return current + timedelta(days=1)
    if cycle == Cycle.WEEKLY:
        return current + timedelta(days=7)
    return current + relativedelta(months=1)


def initial_due_date(start_date: Union[str, date], cycle: Union[str, Cycle]) -> date:
    return advance_due_date(start_date, cycle)


def compute_winnable_amount(contribution_amount: float, max_members: int) -> float:
    return float(contribution_amount) * int(max_members)


def approved_member_ids(memberships: Iterable[Mapping], equb_id: str) -> List[str]:
    return [
        m["user_id"] for m in memberships
        if m.get("equb_id") == equb_id and m.get("status") == APPROVED
    ]


def eligible_member_ids(
    memberships: Iterable[Mapping],
    winners: Iterable[Mapping],
    equb_id: str,
) -> List[str]:
    """Approved members of the equb who have not won any of its rounds yet."""
    past_winner_ids = {w["user_id"] for w in winners if w.get("equb_id") == equb_id}
    return [uid for uid in approved_member_ids(memberships, equb_id) if uid not in past_winner_ids]


def should_activate(equb: Mapping, memberships: Iterable[Mapping]) -> bool:
    if equb.get("status") != EqubStatus.OPEN.value:
        return False
    count = len(approved_member_ids(memberships, equb["id"]))
    return count > 0 and count == int(equb["max_members"])


def status_after_round(round_number: int, max_members: int) -> EqubStatus:
    if round_number >= max_members:
        return EqubStatus.COMPLETED
    return EqubStatus.ACTIVE


def pick_winner(candidates: Sequence[T], rng: Optional[random.Random] = None) -> T:
    """Uniform random pick over the eligible set."""
    if not candidates:
        raise ValueError("No eligible members to draw a winner")
    rng = rng or random.SystemRandom()
    return rng.choice(list(candidates))
