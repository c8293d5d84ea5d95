"""
Delay calculations for sequence steps.

Each step's delay_days counts from the previous step, the first one from the
assignment anchor, so a step is due on the anchor date plus the running sum
of delays up to and including that step.
"""

from datetime import date, timedelta
from typing import Iterable, List, Dict, Any


def cumulative_delay_days(steps: Iterable, step_number: int) -> int:
    """Sum of delay_days for every step numbered up to and including step_number."""
    return sum((step.delay_days or 0) for step in steps if step.step_number <= step_number)


def calculate_due_date(anchor: date, steps: Iterable, step_number: int) -> date:
    """Due date of a step relative to the anchor date."""
    return anchor + timedelta(days=cumulative_delay_days(steps, step_number))


def build_schedule(anchor: date, steps: Iterable) -> List[Dict[str, Any]]:
    """Offsets and due dates for every step, in step order."""
    schedule = []
    running = 0
    for step in sorted(steps, key=lambda s: s.step_number):
        running += step.delay_days or 0
        schedule.append({
            'step_number': step.step_number,
            'delay_days': step.delay_days or 0,
            'cumulative_delay_days': running,
            'due_date': (anchor + timedelta(days=running)).isoformat()
        })
    return schedule
