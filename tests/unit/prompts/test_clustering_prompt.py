"""Unit tests for clustering prompt assembly"""

import pytest

from enrich_batch.exceptions import EmptyInputError, InvalidArgumentError
from enrich_batch.prompts import (
    assemble_clustering_prompt,
    build_clustering_prompt,
    choose_delimiter,
    count_word,
    describe_delimiter,
)


@pytest.mark.unit
class TestDelimiterSelection:
    """Delimiter priority and escalation"""

    def test_first_candidate_when_nothing_collides(self):
        assert choose_delimiter(["solar panels", "wind farms"]) == "///"

    def test_skips_colliding_candidates_in_order(self):
        assert choose_delimiter(["a///b", "c"]) == "|||"
        assert choose_delimiter(["a///b", "c|||d"]) == "###"

    def test_escalates_when_all_fixed_candidates_collide(self):
        assert choose_delimiter(["a///b", "c|||d", "e###f"]) == "//////"

    def test_keeps_growing_until_free(self):
        snippets = ["a//////b", "|||", "###"]
        assert choose_delimiter(snippets) == "/" * 9

    def test_skips_candidate_that_merges_with_snippet_edges(self):
        assert choose_delimiter(["a/", "/b"]) == "|||"

    def test_wraps_run_when_every_run_merges_with_an_edge(self):
        snippets = ["x///y|||z###/", "a"]
        delimiter = choose_delimiter(snippets)
        assert delimiter == "|" + "/" * 15 + "|"
        assert delimiter.join(snippets).split(delimiter) == snippets

    @pytest.mark.parametrize(
        "snippets",
        [
            ["a/", "/b"],
            ["x///y|||z###/", "a"],
            ["x///////", "|||", "###"],
            ["/", "|", "#", "/"],
            ["ends/", "/|", "|#", "#starts"],
            ["a///b", "c|||d", "e###f", "plain"],
            ["", "", "///"],
        ],
    )
    def test_joined_snippets_split_back_exactly(self, snippets):
        delimiter = choose_delimiter(snippets)
        assert not any(delimiter in snippet for snippet in snippets)
        assert delimiter.join(snippets).split(delimiter) == snippets



@pytest.mark.unit
class TestDescribeDelimiter:
    @pytest.mark.parametrize(
        ("delimiter", "expected"),
        [
            ("///", "three forward slashes"),
            ("//////", "six forward slashes"),
            ("|||", "three vertical bars"),
            ("###", "three hash symbols"),
        ],
    )
    def test_names_delimiters_in_words(self, delimiter, expected):
        assert describe_delimiter(delimiter) == expected

    def test_count_words(self):
        assert count_word(2) == "two"
        assert count_word(15) == "fifteen"
        assert count_word(16) == "16"
        assert count_word(1) == "1"


@pytest.mark.unit
class TestAssembleClusteringPrompt:
    def test_single_snippet_uses_single_template(self):
        assembly = assemble_clustering_prompt(["Battery storage costs fell"])
        assert assembly.delimiter is None
        assert assembly.text.endswith("Text: Battery storage costs fell")
        assert "separated by" not in assembly.text

    def test_multiple_snippets_name_count_and_delimiter(self):
        text = build_clustering_prompt(["solar", "wind", "hydro"])
        assert "The following three text snippets" in text
        assert "separated by three forward slashes (///)" in text
        assert text.endswith("Snippets: solar///wind///hydro")

    def test_escalated_delimiter_scenario(self):
        snippets = ["a///b", "c|||d", "e###f"]
        assembly = assemble_clustering_prompt(snippets)

        assert assembly.delimiter == "//////"
        assert "six forward slashes (//////)" in assembly.text
        assert "a///b//////c|||d//////e###f" in assembly.text

    def test_prompt_joins_snippets_that_split_back(self):
        snippets = ["a///b", "c|||d", "e###f/", "/plain"]
        assembly = assemble_clustering_prompt(snippets)
        joined = assembly.text.split("Snippets: ", 1)[1]
        assert joined.split(assembly.delimiter) == snippets

    def test_snippets_are_kept_as_tuple(self):
        assembly = assemble_clustering_prompt(["a", "b"])
        assert assembly.snippets == ("a", "b")

    @pytest.mark.parametrize("snippets", [[], (), None])
    def test_empty_input_raises(self, snippets):
        with pytest.raises(EmptyInputError):
            build_clustering_prompt(snippets)

    def test_bare_string_is_rejected(self):
        with pytest.raises(InvalidArgumentError, match="not a string"):
            build_clustering_prompt("just one string")

    def test_non_string_items_are_rejected(self):
        with pytest.raises(InvalidArgumentError, match="Snippet 1"):
            build_clustering_prompt(["fine", 42])
