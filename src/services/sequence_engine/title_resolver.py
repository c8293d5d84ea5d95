"""
Legacy task title contract.

Tasks created before tasks carried a sequence_id embed the sequence name in
their title as ``... sequence "<name>" - Step <n>``. These helpers recover the
name and match it exactly, so sequences whose names merely appear inside
another sequence's name are never picked up.
"""

import re
from typing import Iterable, Optional

# Closing quote right before the step suffix (or the end), so names may contain quotes
STEP_SUFFIXED_PATTERN = re.compile(r'sequence "(?P<name>.+)"(?=\s*(?:-\s*Step\s+\d+)?\s*$)', re.DOTALL)
LEGACY_SEQUENCE_PATTERN = re.compile(r'sequence "(?P<name>[^"]+)"')


def legacy_title_fragment(sequence_name: str) -> str:
    return f'sequence "{sequence_name}"'


def extract_sequence_name(title: Optional[str]) -> Optional[str]:
    """Sequence name embedded in a legacy task title, if any."""
    if not title:
        return None
    match = STEP_SUFFIXED_PATTERN.search(title) or LEGACY_SEQUENCE_PATTERN.search(title)
    if not match:
        return None
    return match.group('name')


def title_references_sequence(title: Optional[str], sequence_name: str) -> bool:
    return extract_sequence_name(title) == sequence_name


def resolve_sequence_for_title(title: Optional[str], sequences: Iterable):
    """Pick the sequence whose name is the one embedded in the title.

    Several sequences sharing that name make the title ambiguous, and it
    resolves to none of them.
    """
    name = extract_sequence_name(title)
    if name is None:
        return None
    matches = [sequence for sequence in sequences if sequence.name == name]
    if len(matches) != 1:
        return None
    return matches[0]
