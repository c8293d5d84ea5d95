"""
Sequence definitions.

This module contains functionality for:
- Validating step payloads
- Normalizing step payloads into column values
- The example sequence served to clients
"""

import re
import logging
from typing import Dict, List, Any

from src.models.sequence_step import CHANNELS, LINKEDIN_ACTIONS

logger = logging.getLogger(__name__)

PREFERRED_TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')

# Example sequence mixing both channels
EXAMPLE_SEQUENCE = [
    {
        "step_number": 1,
        "channel": "email",
        "message_template": "Hi {{first_name}}, I help teams like {{company_name}} cut the admin out of their outreach. Worth a quick chat?",
        "delay_days": 0
    },
    {
        "step_number": 2,
        "channel": "linkedin",
        "linkedin_action": "connection",
        "message_template": "Hi {{first_name}}, I sent you a note by email and would love to connect here too.",
        "delay_days": 2
    },
    {
        "step_number": 3,
        "channel": "linkedin",
        "linkedin_action": "message",
        "message_template": "Thanks for connecting! Happy to share how similar teams approached this.",
        "delay_days": 3
    },
    {
        "step_number": 4,
        "channel": "email",
        "message_template": "Hi {{first_name}}, final follow-up from me. If the timing is wrong, no problem at all.",
        "delay_days": 5
    }
]


def _is_non_negative_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_step(step: Any, position: int) -> Dict[str, List[str]]:
    """Validate one step payload; position is its 1-based place in the list."""
    errors = []
    warnings = []
    label = f"Step {position}"
    
    if not isinstance(step, dict):
        return {'errors': [f"{label}: must be an object"], 'warnings': []}
    
    channel = step.get('channel')
    if channel not in CHANNELS:
        errors.append(f"{label}: Invalid channel '{channel}'")
    
    linkedin_action = step.get('linkedin_action')
    if linkedin_action is not None:
        if channel != 'linkedin':
            errors.append(f"{label}: linkedin_action is only allowed on linkedin steps")
        elif linkedin_action not in LINKEDIN_ACTIONS:
            errors.append(f"{label}: Invalid linkedin_action '{linkedin_action}'")
    
    delay_days = step.get('delay_days', 0)
    if delay_days is None:
        delay_days = 0
    if not _is_non_negative_int(delay_days):
        errors.append(f"{label}: delay_days must be a non-negative integer")
    
    preferred_time = step.get('preferred_time')
    if preferred_time is not None and not PREFERRED_TIME_PATTERN.match(str(preferred_time)):
        errors.append(f"{label}: preferred_time must use HH:MM")
    
    if not (step.get('message_template') or '').strip():
        warnings.append(f"{label}: No message template")
    
    return {'errors': errors, 'warnings': warnings}


def validate_sequence_definition(steps: Any) -> Dict[str, Any]:
    """Validate a full list of step payloads."""
    if not isinstance(steps, list):
        return {'valid': False, 'errors': ["Sequence steps must be a list"], 'warnings': []}
    
    errors = []
    warnings = []
    
    if not steps:
        warnings.append("Sequence has no steps, assigned prospects complete immediately")
    
    for position, step in enumerate(steps, start=1):
        result = validate_step(step, position)
        errors.extend(result['errors'])
        warnings.extend(result['warnings'])
    
    # Explicit numbering must be dense and 1-based
    numbers = [s.get('step_number') for s in steps if isinstance(s, dict) and s.get('step_number') is not None]
    if numbers:
        if not all(isinstance(n, int) and not isinstance(n, bool) for n in numbers):
            errors.append("step_number values must be integers")
        elif len(numbers) != len(steps):
            errors.append("step_number must be given for every step or for none")
        elif sorted(numbers) != list(range(1, len(steps) + 1)):
            errors.append("step_number values must be unique and run from 1 without gaps")
    
    return {
        'valid': len(errors) == 0,
        'errors': errors,
        'warnings': warnings
    }


def normalize_step(step: Dict[str, Any], step_number: int) -> Dict[str, Any]:
    """Column values for a validated step payload."""
    channel = step['channel']
    linkedin_action = None
    if channel == 'linkedin':
        linkedin_action = step.get('linkedin_action') or 'message'
    
    return {
        'step_number': step_number,
        'channel': channel,
        'linkedin_action': linkedin_action,
        'message_template': step.get('message_template'),
        'delay_days': step.get('delay_days') or 0,
        'preferred_time': step.get('preferred_time')
    }


def ordered_step_payloads(steps: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Payloads in step order, honouring explicit step_number when present."""
    if steps and all(s.get('step_number') is not None for s in steps):
        return sorted(steps, key=lambda s: s['step_number'])
    return list(steps)
