"""
Course Matcher

Resolves a free-text course name into the catalog offerings that plausibly
teach the same discipline. Source course names are abbreviated
inconsistently ("Computer Engineering", "Computer Science & Engineering",
"IT"), so matching works on normalised tokens plus a versioned alias table
shipped as data in course_aliases.json.
"""

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, List, Optional, Tuple

from .catalog import Catalog
from .config import ALIAS_TABLE_PATH
from .models import CourseOffering, Institution

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+")


@dataclass(frozen=True)
class AliasRule:
    trigger: Tuple[str, ...]
    matches: Tuple[Tuple[str, ...], ...]


@dataclass(frozen=True)
class AliasTable:
    version: str
    rules: Tuple[AliasRule, ...]


def tokenize(text: str) -> Tuple[str, ...]:
    return tuple(_TOKEN_RE.findall(text.lower().replace("&", " and ")))


def contains_phrase(tokens: Tuple[str, ...], phrase: Tuple[str, ...]) -> bool:
    """True if `phrase` occurs in `tokens` as a contiguous run."""
    if not phrase:
        return False
    width = len(phrase)
    return any(tokens[i:i + width] == phrase for i in range(len(tokens) - width + 1))


def contains_prefix_phrase(tokens: Tuple[str, ...], phrase: Tuple[str, ...]) -> bool:
    """Like `contains_phrase`, but each phrase token may be a prefix of its token ("mech" -> "mechanical")."""
    if not phrase:
        return False
    width = len(phrase)
    return any(
        all(token.startswith(part) for token, part in zip(tokens[i:i + width], phrase))
        for i in range(len(tokens) - width + 1)
    )


def parse_alias_table(data: dict) -> AliasTable:
    rules = []
    for entry in data.get("aliases", []):
        trigger = tokenize(entry.get("trigger", ""))
        matches = tuple(tokenize(m) for m in entry.get("matches", []) if tokenize(m))
        if trigger and matches:
            rules.append(AliasRule(trigger, matches))
    return AliasTable(str(data.get("version", "unversioned")), tuple(rules))


@lru_cache(maxsize=None)
def load_alias_table(path: str = ALIAS_TABLE_PATH) -> AliasTable:
    with open(path, encoding="utf-8") as f:
        table = parse_alias_table(json.load(f))
    logger.info(f"Loaded course alias table version {table.version} ({len(table.rules)} rules)")
    return table


class CourseMatcher:
    def __init__(self, alias_table: Optional[AliasTable] = None):
        self.alias_table = alias_table if alias_table is not None else load_alias_table()

    def matches(self, requested: str, offering_name: str) -> bool:
        request_tokens = tokenize(requested)
        if not request_tokens:
            return False
        offering_tokens = tokenize(offering_name)

        # Tokens only match from their start, so "IT" never matches "Architecture"
        if contains_prefix_phrase(offering_tokens, request_tokens) or contains_phrase(request_tokens, offering_tokens):
            return True

        if any(token.startswith(request_tokens[0]) for token in offering_tokens):
            return True

        for rule in self.alias_table.rules:
            if contains_phrase(request_tokens, rule.trigger) and any(
                contains_phrase(offering_tokens, phrase) for phrase in rule.matches
            ):
                return True
        return False

    def match(
        self, requested: str, offerings: Iterable[Tuple[Institution, CourseOffering]]
    ) -> List[Tuple[Institution, CourseOffering]]:
        return [(inst, offering) for inst, offering in offerings if self.matches(requested, offering.name)]

    def match_catalog(self, requested: str, catalog: Catalog) -> List[Tuple[Institution, CourseOffering]]:
        matched = self.match(requested, catalog.iter_offerings())
        logger.debug(f"Course '{requested}' matched {len(matched)} offering(s)")
        return matched
