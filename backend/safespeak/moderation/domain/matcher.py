"""Deterministic lexicon matching and highlighting."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping

from safespeak.moderation.domain.lexicon import Lexicon, LexiconCategory, MatchMode, UnknownCategoryError
from safespeak.settings import DEFAULT_HIGHLIGHT_TEMPLATE

# Lookarounds rather than \b so entries that start or end with symbols
# ("a$$", "f*ck") still anchor on word edges. Phrases only anchor their
# start: "end it all" must not fire inside "defend it all", while
# "hopeless" still covers "hopelessly".
_WORD_PREFIX = r"(?<!\w)"
_WORD_SUFFIX = r"(?!\w)"


@dataclass(frozen=True)
class MatchSpan:
    start: int
    end: int
    term: str


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one category against a text."""

    category: str
    matched: bool
    terms: tuple[str, ...] = ()
    spans: tuple[MatchSpan, ...] = ()

    @staticmethod
    def empty(category: str) -> "MatchResult":
        return MatchResult(category=category, matched=False)


@dataclass(frozen=True)
class _CompiledEntry:
    term: str
    regex: re.Pattern[str]


class PatternMatcher:
    """Case-insensitive matcher over one lexicon.

    Entries are compiled once at construction; matching holds no state so a
    single instance is shared by concurrent analyses.
    """

    def __init__(self, lexicon: Lexicon, *, highlight_template: str = DEFAULT_HIGHLIGHT_TEMPLATE) -> None:
        if "{}" not in highlight_template:
            raise ValueError("highlight_template must contain a '{}' placeholder")
        self.lexicon = lexicon
        self.highlight_template = highlight_template
        self._compiled: Mapping[str, tuple[_CompiledEntry, ...]] = {
            name: self._compile(category) for name, category in lexicon.categories.items()
        }

    @staticmethod
    def _compile(category: LexiconCategory) -> tuple[_CompiledEntry, ...]:
        compiled: list[_CompiledEntry] = []
        for entry, is_regex in category.entries:
            body = entry if is_regex else re.escape(entry)
            if category.mode is MatchMode.WORD:
                body = f"{_WORD_PREFIX}(?:{body}){_WORD_SUFFIX}"
            else:
                body = f"{_WORD_PREFIX}(?:{body})"
            compiled.append(_CompiledEntry(term=entry, regex=re.compile(body, re.IGNORECASE)))
        return tuple(compiled)

    def _entries(self, category: str) -> tuple[_CompiledEntry, ...]:
        try:
            return self._compiled[category]
        except KeyError:
            raise UnknownCategoryError(f"{self.lexicon.name} lexicon has no category {category!r}") from None

    def matches(self, text: str, category: str) -> MatchResult:
        entries = self._entries(category)
        if not text:
            return MatchResult.empty(category)
        terms: list[str] = []
        found: list[MatchSpan] = []
        for entry in entries:
            hit = False
            for match in entry.regex.finditer(text):
                if match.end() == match.start():
                    continue
                found.append(MatchSpan(start=match.start(), end=match.end(), term=entry.term))
                hit = True
            if hit:
                terms.append(entry.term)
        if not found:
            return MatchResult.empty(category)
        return MatchResult(category=category, matched=True, terms=tuple(terms), spans=_merge(found))

    def first_match(self, text: str, category: str) -> str | None:
        """Return the first lexicon entry (in lexicon order) found in ``text``."""
        entries = self._entries(category)
        if not text:
            return None
        for entry in entries:
            if entry.regex.search(text):
                return entry.term
        return None

    def highlight(self, text: str, result: MatchResult) -> str:
        """Wrap every matched span, leaving the rest of ``text`` untouched."""
        if not result.matched:
            return text
        pieces: list[str] = []
        cursor = 0
        for span in result.spans:
            pieces.append(text[cursor:span.start])
            pieces.append(self._render(text[span.start:span.end]))
            cursor = span.end
        pieces.append(text[cursor:])
        return "".join(pieces)

    def wrap(self, text: str) -> str:
        return self._render(text)

    def _render(self, segment: str) -> str:
        # Plain substitution; other braces in the template (inline CSS) stay literal.
        return self.highlight_template.replace("{}", segment)


def _merge(spans: list[MatchSpan]) -> tuple[MatchSpan, ...]:
    """Sort spans by position and drop those overlapping an earlier, longer one."""
    ordered = sorted(spans, key=lambda span: (span.start, -(span.end - span.start), span.term))
    kept: list[MatchSpan] = []
    for span in ordered:
        if kept and span.start < kept[-1].end:
            continue
        kept.append(span)
    return tuple(kept)
