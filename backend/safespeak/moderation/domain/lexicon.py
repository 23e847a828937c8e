"""Categorized term lists used by the pattern matcher.

Two independent lexicons live here. The moderation lexicon (profanity, hate
speech, threats) backs the strict reject/allow flow; the crisis lexicon
(vulgar words, suicide and depression keywords) backs support routing. They
are allowed to drift apart: "die" is a threat term for rejection purposes but
crisis routing only reacts to explicit self-harm phrases.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import yaml

logger = logging.getLogger(__name__)


class MatchMode(str, Enum):
    """How entries of a category are located in text."""

    WORD = "word"
    PHRASE = "phrase"


class UnknownCategoryError(KeyError):
    """Raised when a lexicon has no category with the requested name."""


@dataclass(frozen=True)
class LexiconCategory:
    """Ordered terms for one category.

    ``terms`` are literal words or phrases. ``patterns`` are regular
    expressions for obfuscated spellings (``f[u*@]ck``) and are matched with
    the same mode as the literal terms.
    """

    name: str
    terms: tuple[str, ...]
    patterns: tuple[str, ...] = ()
    mode: MatchMode = MatchMode.WORD

    @property
    def entries(self) -> tuple[tuple[str, bool], ...]:
        """Every entry paired with a flag telling whether it is a regex."""
        return tuple((term, False) for term in self.terms) + tuple((pattern, True) for pattern in self.patterns)

    @staticmethod
    def from_mapping(name: str, data: Mapping[str, Any], *, default_mode: MatchMode = MatchMode.WORD) -> "LexiconCategory":
        """Build a category from config; raises ``ValueError`` on a bad mode or regex."""
        patterns = _dedupe(str(pattern) for pattern in data.get("patterns", ()) if str(pattern).strip())
        for pattern in patterns:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"invalid pattern {pattern!r} in category {name}: {exc}") from exc
        return LexiconCategory(
            name=name,
            terms=_dedupe(str(term) for term in data.get("terms", ()) if str(term).strip()),
            patterns=patterns,
            mode=MatchMode(str(data.get("mode", default_mode.value)).lower()),
        )


@dataclass(frozen=True)
class Lexicon:
    """Immutable category name -> terms mapping."""

    name: str
    categories: Mapping[str, LexiconCategory] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "categories", MappingProxyType(dict(self.categories)))

    def category(self, name: str) -> LexiconCategory:
        try:
            return self.categories[name]
        except KeyError:
            raise UnknownCategoryError(f"{self.name} lexicon has no category {name!r}") from None

    def names(self) -> tuple[str, ...]:
        return tuple(self.categories)

    def replace(self, *updates: LexiconCategory) -> "Lexicon":
        merged = dict(self.categories)
        for update in updates:
            merged[update.name] = update
        return Lexicon(name=self.name, categories=merged)

    @staticmethod
    def of(name: str, *categories: LexiconCategory) -> "Lexicon":
        return Lexicon(name=name, categories={category.name: category for category in categories})


def _dedupe(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


# --- Moderation lexicon (reject/allow) -------------------------------------

PROFANITY = "profanity"
HATE_SPEECH = "hate_speech"
THREATS = "threats"

MODERATION_LEXICON = Lexicon.of(
    "moderation",
    LexiconCategory(
        name=PROFANITY,
        terms=(
            "fuck", "shit", "ass", "bitch", "bastard", "cunt", "dick", "pussy", "cock", "whore",
            "slut", "damn", "piss", "tits", "titties", "boobs", "vagina", "penis",
            "f4ck", "sh1t", "b1tch", "4ss", "p0rn",
        ),
        patterns=(r"f[u*@]ck", r"sh[i*@]t", r"b[i*@]tch", r"a[s$][s$]", r"p[u*@]ssy"),
    ),
    LexiconCategory(
        name=HATE_SPEECH,
        terms=(
            "nigger", "nigga", "chink", "spic", "kike", "faggot", "fag", "dyke",
            "retard", "tard", "negro", "wetback", "beaner", "gook",
        ),
    ),
    LexiconCategory(
        name=THREATS,
        terms=(
            "kill", "murder", "death", "die", "suicide", "rape", "bomb",
            "shoot", "attack", "terrorist", "terror",
        ),
    ),
)

# --- Crisis lexicon (support routing) --------------------------------------

VULGAR = "vulgar"
SUICIDE = "suicide"
DEPRESSION = "depression"

CRISIS_LEXICON = Lexicon.of(
    "crisis",
    LexiconCategory(
        name=VULGAR,
        terms=(
            "fuck", "fucking", "fucker", "motherfucker", "shit", "bullshit", "ass", "asshole",
            "bitch", "bastard", "damn", "crap", "dick", "piss", "cunt", "slut", "whore",
            "idiot", "stupid", "dumb", "moron", "retard", "loser", "wtf", "stfu",
        ),
        patterns=(r"f[u*@]ck", r"sh[i1*!]t", r"b[i1*!]tch", r"a[s$][s$](?:hole)?", r"d[i1*!]ck"),
    ),
    LexiconCategory(
        name=SUICIDE,
        mode=MatchMode.PHRASE,
        terms=(
            "kill myself", "killing myself", "suicide", "suicidal", "end my life", "ending my life",
            "take my own life", "want to die", "wanna die", "better off dead", "no reason to live",
            "end it all", "don't want to live", "dont want to live", "hurt myself", "self harm",
            "self-harm", "cut myself",
        ),
    ),
    LexiconCategory(
        name=DEPRESSION,
        mode=MatchMode.PHRASE,
        terms=(
            "depressed", "depression", "hopeless", "helpless", "worthless", "empty inside",
            "feel empty", "feel numb", "feeling numb", "lonely", "no motivation", "can't go on", "cant go on",
            "tired of everything", "nothing matters", "hate myself", "no one cares",
            "crying every day", "can't get out of bed",
        ),
    ),
)


def load_lexicon(path: str | Path | None, base: Lexicon) -> Lexicon:
    """Return ``base`` with categories replaced by those listed in a YAML file.

    The file maps category names to ``{terms: [...], patterns: [...], mode: word|phrase}``.
    Categories not listed keep the built-in terms. A top-level key matching
    the lexicon name (``crisis:``/``moderation:``) scopes overrides to that
    lexicon so one file can carry both.
    """

    if not path:
        return base
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning("lexicon file missing at %s; using built-in %s lexicon", path, base.name)
        return base
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        logger.warning("failed to parse lexicon YAML at %s: %s", path, exc)
        return base
    if not isinstance(data, Mapping):
        logger.warning("lexicon file invalid at %s; using built-in %s lexicon", path, base.name)
        return base
    scoped = data.get(base.name, data)
    if not isinstance(scoped, Mapping):
        return base
    updates: list[LexiconCategory] = []
    for name, category_cfg in scoped.items():
        if not isinstance(category_cfg, Mapping):
            continue
        if name not in base.categories:
            # Other lexicon's categories may share the file.
            continue
        default_mode = base.categories[name].mode
        try:
            updates.append(LexiconCategory.from_mapping(str(name), category_cfg, default_mode=default_mode))
        except ValueError as exc:
            logger.warning("lexicon category %s is invalid (%s); keeping built-in terms", name, exc)
    if updates:
        logger.info("lexicon overrides loaded", extra={"lexicon": base.name, "categories": [c.name for c in updates]})
    return base.replace(*updates)
