"""
Unit tests for resolving sequences from legacy task titles.
"""

from types import SimpleNamespace

from src.services.sequence_engine.title_resolver import (
    extract_sequence_name,
    title_references_sequence,
    resolve_sequence_for_title,
    legacy_title_fragment
)


def sequences(*names):
    return [SimpleNamespace(id=f'seq-{i}', name=name) for i, name in enumerate(names)]


class TestExtractSequenceName:
    """Test pulling the sequence name out of a title."""

    def test_with_step_suffix(self):
        assert extract_sequence_name('Send email to Acme - sequence "Q4 Outreach" - Step 2') == 'Q4 Outreach'

    def test_without_step_suffix(self):
        assert extract_sequence_name('Reminder for sequence "Warm leads"') == 'Warm leads'

    def test_name_with_quotes(self):
        title = 'Follow up - sequence "The "Big" Push" - Step 1'
        assert extract_sequence_name(title) == 'The "Big" Push'

    def test_quoted_name_in_the_middle_of_a_title(self):
        assert extract_sequence_name('sequence "Alpha" follow-up call') == 'Alpha'

    def test_titles_without_sequence(self):
        assert extract_sequence_name('Call the accountant') is None
        assert extract_sequence_name('') is None
        assert extract_sequence_name(None) is None


class TestResolveSequence:
    """Test matching titles against sequences."""

    def test_exact_match_only(self):
        candidates = sequences('Q4 Outreach Extended', 'Q4 Outreach', 'Q4')

        match = resolve_sequence_for_title('Send email - sequence "Q4 Outreach" - Step 1', candidates)

        assert match.name == 'Q4 Outreach'

    def test_substring_names_never_match(self):
        candidates = sequences('Q4 Outreach Extended')

        assert resolve_sequence_for_title('Send email - sequence "Q4 Outreach" - Step 1', candidates) is None

    def test_punctuation(self):
        candidates = sequences('Re: [EU] C-level (v2.1)?')

        match = resolve_sequence_for_title('Send email - sequence "Re: [EU] C-level (v2.1)?" - Step 3', candidates)

        assert match is candidates[0]

    def test_references_sequence(self):
        title = 'Call - ' + legacy_title_fragment('Warm leads') + ' - Step 4'

        assert title_references_sequence(title, 'Warm leads')
        assert not title_references_sequence(title, 'Warm')

    def test_duplicate_names_are_ambiguous(self):
        candidates = sequences('Q4 Outreach', 'Q4 Outreach')

        assert resolve_sequence_for_title('Send email - sequence "Q4 Outreach" - Step 1', candidates) is None
