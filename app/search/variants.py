"""Typo-tolerant query variant generation.

Every helper here is a pure function of its input text. The variants are
fed to :class:`app.search.ranking.SearchRanker`, which decides how many of
them are actually sent upstream.
"""

from __future__ import annotations

import re
import string

from ..utils import collapse_whitespace

DOUBLE_RUN_RE = re.compile(r"(.)\1")

# Applied one rule at a time, never compounded.
PHONETIC_RULES: tuple[tuple[str, str], ...] = (
    ("ph", "f"),
    ("ck", "k"),
    ("qu", "kw"),
    ("x", "ks"),
    ("c", "k"),
    ("z", "s"),
    ("j", "g"),
)

LETTER_DOUBLES: tuple[str, ...] = tuple(letter * 2 for letter in string.ascii_lowercase)

MIN_MUTATED_WORD = 3
MIN_DEEP_MUTATED_WORD = 4
MIN_DELETION_RESULT = 3


def normalize_query(query: str) -> str:
    """Lower-case the query and collapse whitespace runs."""

    return collapse_whitespace(query.lower())


def collapse_repeats(word: str) -> str:
    """Collapse every run of a repeated character, repeating until stable."""

    previous = None
    current = word
    while current != previous:
        previous = current
        current = DOUBLE_RUN_RE.sub(r"\1", current)
    return current


def single_double_removals(word: str) -> list[str]:
    """Undo one doubled letter at a time, leaving any other doubles intact."""

    return [
        word[:index] + word[index + 1 :]
        for index in range(len(word) - 1)
        if word[index] == word[index + 1]
    ]


def enumerated_double_removals(word: str) -> list[str]:
    """Collapse each ``aa``..``zz`` pattern found in the word, one pattern per variant."""

    return [
        word.replace(double, double[0])
        for double in LETTER_DOUBLES
        if double in word
    ]


def deletions(word: str) -> list[str]:
    """Drop one character at each position, keeping results of usable length."""

    results = []
    for index in range(len(word)):
        candidate = word[:index] + word[index + 1 :]
        if len(candidate) >= MIN_DELETION_RESULT:
            results.append(candidate)
    return results


def transpositions(word: str) -> list[str]:
    """Swap each pair of adjacent characters."""

    results = []
    for index in range(len(word) - 1):
        first, second = word[index], word[index + 1]
        if first == second:
            continue
        results.append(word[:index] + second + first + word[index + 2 :])
    return results


def phonetic_substitutions(word: str) -> list[str]:
    """Apply each sound-alike replacement rule independently."""

    return [
        word.replace(pattern, replacement)
        for pattern, replacement in PHONETIC_RULES
        if pattern in word
    ]


def mutate_word(word: str) -> list[str]:
    """Return every single-word typo correction candidate for ``word``."""

    if len(word) < MIN_MUTATED_WORD:
        return []

    mutations: list[str] = []
    collapsed = collapse_repeats(word)
    if collapsed != word:
        mutations.append(collapsed)
    mutations.extend(single_double_removals(word))
    mutations.extend(enumerated_double_removals(word))

    if len(word) >= MIN_DEEP_MUTATED_WORD:
        mutations.extend(deletions(word))
        mutations.extend(transpositions(word))

    mutations.extend(phonetic_substitutions(word))
    return [mutation for mutation in mutations if mutation and mutation != word]


def generate_variants(query: str) -> list[str]:
    """Return the ordered, deduplicated variants for a free-text query.

    The normalized query always comes first. The remaining variants follow
    longest first so that the more specific candidates are tried before the
    shorter ones; equal lengths keep their generation order.
    """

    normalized = normalize_query(query)
    if not normalized:
        return []

    words = normalized.split(" ")
    emitted: list[str] = [normalized]

    for position, word in enumerate(words):
        for mutation in mutate_word(word):
            emitted.append(
                " ".join(words[:position] + [mutation] + words[position + 1 :])
            )

    if len(words) > 1:
        emitted.extend(word for word in words if len(word) >= MIN_MUTATED_WORD)
        emitted.extend(
            f"{left} {right}" for left, right in zip(words, words[1:])
        )

    unique = list(dict.fromkeys(emitted))
    head, rest = unique[0], unique[1:]
    rest.sort(key=len, reverse=True)
    return [head, *rest]
