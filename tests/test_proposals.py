"""Tests for proposal deduplication."""

from patchwise.models import Proposal
from patchwise.tools.proposals import dedupe_proposals, proposal_key


def _proposal(**kwargs):
    data = {"file": "src/app.js", "original": "a", "replacement": "b", "line_number": 3}
    data.update(kwargs)
    return Proposal(**data)


class TestDedupe:

    def test_identical_proposals_collapse_and_line_variant_survives(self, tmp_path):
        first = _proposal(explanation="first")
        duplicate = _proposal(explanation="second wording")
        other_line = _proposal(line_number=4)

        result = dedupe_proposals([first, duplicate, other_line], tmp_path)

        assert result == [first, other_line]
        assert result[0].explanation == "first"

    def test_order_is_preserved(self, tmp_path):
        a = _proposal(file="a.js")
        b = _proposal(file="b.js")
        c = _proposal(file="c.js")
        assert dedupe_proposals([c, a, b, a], tmp_path) == [c, a, b]

    def test_equivalent_paths_are_the_same_file(self, tmp_path):
        plain = _proposal(file="src/app.js")
        dotted = _proposal(file="./src/../src/app.js")
        assert dedupe_proposals([plain, dotted], tmp_path) == [plain]

    def test_null_line_number_is_distinct_from_a_line(self, tmp_path):
        append = _proposal(line_number=None, original="")
        at_line = _proposal(line_number=1, original="")
        assert len(dedupe_proposals([append, at_line], tmp_path)) == 2

    def test_key_contains_null_marker_and_hashes(self, tmp_path):
        key = proposal_key(_proposal(line_number=None), tmp_path)
        path, line, original_hash, replacement_hash = key.split("|")
        assert path.endswith("app.js")
        assert line == "null"
        assert len(original_hash) == 64
        assert original_hash != replacement_hash

    def test_empty_input(self, tmp_path):
        assert dedupe_proposals([], tmp_path) == []
