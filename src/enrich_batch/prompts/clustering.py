"""Clustering prompt assembly.

Builds the instruction sent to a chat model to name the topic shared by a
cluster's representative snippets. With several snippets, they are joined by
a delimiter that occurs in none of them, and the prompt names that delimiter
in words so the model can split on it.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from enrich_batch.constants import DELIMITER_CANDIDATES
from enrich_batch.core.types import PromptAssembly
from enrich_batch.exceptions import EmptyInputError, InvalidArgumentError

_COUNT_WORDS = {
    2: "two",
    3: "three",
    4: "four",
    5: "five",
    6: "six",
    7: "seven",
    8: "eight",
    9: "nine",
    10: "ten",
    11: "eleven",
    12: "twelve",
    13: "thirteen",
    14: "fourteen",
    15: "fifteen",
}

_CHARACTER_NAMES = {
    "/": "forward slashes",
    "|": "vertical bars",
    "#": "hash symbols",
}

SINGLE_SNIPPET_TEMPLATE = (
    "The following text is representative of a cluster of related records.\n"
    "Identify the topic it is about and reply with a short, descriptive topic "
    "label of no more than ten words. Reply with the label only.\n\n"
    "Text: {snippet}"
)

MULTI_SNIPPET_TEMPLATE = (
    "The following {count} text snippets are representative of a cluster of "
    "related records. The snippets are separated by {delimiter_name} "
    "({delimiter}).\n"
    "Identify the topic they have in common and reply with a short, descriptive "
    "topic label of no more than ten words. Reply with the label only.\n\n"
    "Snippets: {joined}"
)


def count_word(n: int) -> str:
    """English word for 2-15, the numeral for anything else."""
    return _COUNT_WORDS.get(n, str(n))


def describe_delimiter(delimiter: str) -> str:
    """Name a delimiter in words, e.g. ``"///"`` -> "three forward slashes"."""
    if len(set(delimiter)) == 1 and delimiter[0] in _CHARACTER_NAMES:
        return f"{count_word(len(delimiter))} {_CHARACTER_NAMES[delimiter[0]]}"
    return f'the character sequence "{delimiter}"'


def choose_delimiter(snippets: Sequence[str]) -> str:
    """First candidate that occurs in no snippet and splits the join back exactly.

    After the fixed candidates, longer runs of the first candidate are tried
    until one is longer than every snippet. A snippet that begins or ends
    with the run's character can still blur a join boundary, so the last
    candidate wraps that run in vertical bars; it cannot match anywhere but
    at the joins.
    """
    return next(
        candidate
        for candidate in _candidates(snippets)
        if _splits_cleanly(candidate, snippets)
    )


def _candidates(snippets: Sequence[str]) -> Iterable[str]:
    yield from DELIMITER_CANDIDATES
    base = DELIMITER_CANDIDATES[0]
    longest = max((len(snippet) for snippet in snippets), default=0)
    run = base
    while len(run) <= longest:
        run += base
        yield run
    yield f"|{run}|"


def _splits_cleanly(candidate: str, snippets: Sequence[str]) -> bool:
    if any(candidate in snippet for snippet in snippets):
        return False
    joined = candidate.join(snippets)
    return len(snippets) < 2 or joined.split(candidate) == list(snippets)


def assemble_clustering_prompt(snippets: Sequence[str]) -> PromptAssembly:
    """Build the clustering prompt for ``snippets``.

    Raises:
        EmptyInputError: If there are no snippets.
        InvalidArgumentError: If ``snippets`` is a bare string or holds
            non-string items.
    """
    if snippets is None:
        raise EmptyInputError("Cannot build a clustering prompt without any snippets")
    if isinstance(snippets, str | bytes):
        raise InvalidArgumentError(
            "snippets must be a sequence of strings, not a string"
        )
    items = tuple(snippets)
    if not items:
        raise EmptyInputError("Cannot build a clustering prompt without any snippets")
    for i, item in enumerate(items):
        if not isinstance(item, str):
            raise InvalidArgumentError(
                f"Snippet {i} must be a string, got {type(item).__name__}"
            )

    if len(items) == 1:
        text = SINGLE_SNIPPET_TEMPLATE.format(snippet=items[0])
        return PromptAssembly(snippets=items, delimiter=None, text=text)

    delimiter = choose_delimiter(items)
    text = MULTI_SNIPPET_TEMPLATE.format(
        count=count_word(len(items)),
        delimiter_name=describe_delimiter(delimiter),
        delimiter=delimiter,
        joined=delimiter.join(items),
    )
    return PromptAssembly(snippets=items, delimiter=delimiter, text=text)


def build_clustering_prompt(snippets: Sequence[str]) -> str:
    """Prompt text for ``snippets``; see ``assemble_clustering_prompt``."""
    return assemble_clustering_prompt(snippets).text
