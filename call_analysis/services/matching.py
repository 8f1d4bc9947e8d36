"""
Ordered matching of free-text model values against a taxonomy list.

Each matcher is a small pure predicate over (candidate, entry). A pipeline is
an ordered tuple of predicates: the first predicate that matches any entry
wins, and within one predicate the first entry in configured order wins.
When two labels could both fuzzy-match a garbled value, the one declared
first in the taxonomy is chosen.
"""
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from call_analysis.models.taxonomy import TaxonomyEntry

_SEPARATORS = re.compile(r"[\s-]")


@dataclass(frozen=True)
class Candidate:
    """A raw value prepared once for all matchers."""
    text: str        # trimmed
    lower: str       # trimmed + lowercased
    key_form: str    # lowercased with spaces/hyphens turned into underscores

    @classmethod
    def from_text(cls, text: str) -> "Candidate":
        trimmed = text.strip()
        lower = trimmed.lower()
        return cls(text=trimmed, lower=lower, key_form=_SEPARATORS.sub("_", lower))


Matcher = Callable[[Candidate, TaxonomyEntry], bool]


# =============================================================================
# Predicates
# =============================================================================

def exact_label(c: Candidate, entry: TaxonomyEntry) -> bool:
    return entry.label == c.text


def label_ignore_case(c: Candidate, entry: TaxonomyEntry) -> bool:
    return entry.label.lower() == c.lower


def exact_key(c: Candidate, entry: TaxonomyEntry) -> bool:
    return entry.key == c.lower or entry.key == c.text


def normalized_key(c: Candidate, entry: TaxonomyEntry) -> bool:
    return entry.key == c.key_form


def fuzzy_label(c: Candidate, entry: TaxonomyEntry) -> bool:
    label = entry.label.lower()
    return label in c.lower or c.lower in label


def fuzzy_key_or_label(c: Candidate, entry: TaxonomyEntry) -> bool:
    key = entry.key.lower()
    return key in c.lower or c.lower in key or fuzzy_label(c, entry)


# Outcomes: label exact -> label case-insensitive -> key form -> fuzzy label
OUTCOME_MATCHERS: tuple[Matcher, ...] = (
    exact_label,
    label_ignore_case,
    normalized_key,
    fuzzy_label,
)

# Objection types: key exact -> key form -> label case-insensitive -> fuzzy key/label
OBJECTION_TYPE_MATCHERS: tuple[Matcher, ...] = (
    exact_key,
    normalized_key,
    label_ignore_case,
    fuzzy_key_or_label,
)


def match_entry(
    value: object,
    entries: Iterable[TaxonomyEntry],
    matchers: tuple[Matcher, ...],
) -> Optional[TaxonomyEntry]:
    """Return the first entry matched by the pipeline, or None.

    Non-string and blank values never match.
    """
    if not isinstance(value, str):
        return None
    candidate = Candidate.from_text(value)
    if not candidate.text:
        return None

    entries = tuple(entries)
    for matcher in matchers:
        for entry in entries:
            if matcher(candidate, entry):
                return entry
    return None
