"""
Entity extraction for child-profile facts.

Scans the whole accumulated dialogue (English and Chinese) for the child's
name, a birth date or age phrase, and gender. Rules are plain typed records
evaluated first-match-wins in list order, so each rule can be tested and
extended on its own.
"""

import re
import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Pattern, Union

from models.schemas import ExtractionCandidate, Gender, Turn
from .age_normalizer import looks_like_date, parse_ambiguous_date

logger = logging.getLogger(__name__)

CJK_CHAR = re.compile(r"[一-鿿]")

MAX_NAME_LENGTH = 30

# Single-token English captures that are never names
ENGLISH_STOP_WORDS = frozenset({
    "a", "an", "the", "and", "or", "but", "so", "is", "was", "my", "our", "his", "her",
    "also", "just", "very", "not", "now", "still", "only", "really",
    "sick", "ill", "unwell", "having", "feeling", "coughing", "crying", "sleeping",
    "running", "getting", "suffering", "vomiting", "teething", "always", "too", "born",
    "this", "that", "he", "she", "it", "who", "here", "there",
    # States and descriptions that follow "my son is ..."
    "tired", "feverish", "hot", "cold", "warm", "sleepy", "fussy", "cranky", "irritable",
    "weak", "pale", "hungry", "thirsty", "congested", "sneezing", "wheezing",
    "better", "worse", "fine", "okay", "ok", "well", "good", "bad", "sad", "upset",
    "scared", "worried", "sore", "itchy", "dizzy", "nauseous", "lethargic", "restless",
    "asleep", "awake", "home", "back", "growing", "eating", "drinking", "breathing",
    "doing", "acting", "being", "new", "little", "small", "big", "young",
    "older", "younger", "healthy", "allergic", "stuffy", "snotty", "red", "swollen",
    "going", "staying", "off", "out", "in", "at", "with", "from", "about", "all",
})

# Chinese fillers that end a name capture
CHINESE_STOP_WORDS = ("今年", "现在", "已经", "还", "和", "跟", "与", "的", "是", "了", "呢", "吧", "啊", "呀", "有", "在")

_CJK = r"一-鿿"


@dataclass(frozen=True)
class NamePattern:
    """Phrase that introduces the child's name in group 1"""
    key: str
    regex: Pattern


@dataclass(frozen=True)
class DatePattern:
    """Explicit calendar date in group 1"""
    key: str
    regex: Pattern


@dataclass(frozen=True)
class AgePattern:
    """Age phrase; group 1 is the raw temporal text handed to the normalizer"""
    key: str
    regex: Pattern


@dataclass(frozen=True)
class GenderKeywordSet:
    """Keywords whose presence anywhere in the dialogue implies a gender"""
    gender: Gender
    latin: FrozenSet[str]
    cjk: FrozenSet[str] = field(default_factory=frozenset)

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        if any(re.search(rf"\b{re.escape(word)}\b", lowered) for word in self.latin):
            return True
        return any(word in text for word in self.cjk)


TemporalPattern = Union[DatePattern, AgePattern]


def _compile(pattern: str) -> Pattern:
    return re.compile(pattern, re.IGNORECASE)


_DATE_TEXT = r"(\d{4}\s*[-/.]\s*\d{1,2}\s*[-/.]\s*\d{1,2}|\d{1,2}\s*[-/.]\s*\d{1,2}\s*[-/.]\s*\d{4}|\d{4}年\d{1,2}月\d{1,2}[日号]?)"

NAME_PATTERNS: List[NamePattern] = [
    NamePattern("en_child_named", _compile(
        r"\b(?:child|kid|baby|son|daughter|boy|girl)(?:'s)?\s+(?:name\s+is|is\s+named|is\s+called|is|named|called)\s+([a-z][a-z'-]*)"
    )),
    NamePattern("en_name_is", _compile(r"\b(?:(?:his|her|the)\s+name\s+is|name\s+is|named|called)\s+([a-z][a-z'-]*)")),
    NamePattern("zh_child_called", _compile(
        rf"(?:孩子|小孩|宝宝|宝贝|儿子|女儿)(?:的名字)?(?:叫做|名叫|叫|名字是|名字叫)\s*([{_CJK}A-Za-z]{{1,8}})"
    )),
    NamePattern("zh_name_is", _compile(rf"(?:名字是|名字叫|叫做|名叫|他叫|她叫)\s*([{_CJK}A-Za-z]{{1,8}})")),
    NamePattern("en_reversed", _compile(r"\b([a-z][a-z'-]*)\s+is\s+my\s+(?:child|kid|baby|son|daughter)\b")),
    NamePattern("zh_reversed", _compile(rf"([{_CJK}]{{2,3}})是我的?(?:孩子|小孩|宝宝|儿子|女儿)")),
]

TEMPORAL_PATTERNS: List[TemporalPattern] = [
    # Explicit dates first: they are unambiguous
    DatePattern("en_born_on", _compile(
        rf"\b(?:born|birthday|date\s+of\s+birth|birth\s+date|dob)\s*(?:on|is|was|:)?\s*(?:on\s+)?{_DATE_TEXT}"
    )),
    DatePattern("zh_born_on", _compile(rf"(?:出生日期|出生|生日)\s*(?:是|于|在|为|:|：)?\s*{_DATE_TEXT}")),
    DatePattern("any_date", _compile(rf"(?<!\d){_DATE_TEXT}(?!\d)")),
    # Age phrases
    AgePattern("en_unit_old", _compile(
        r"\b(\d{1,3}\s*(?:-\s*)?(?:years?|yrs?|months?|days?))(?:\s*-\s*|\s+)old\b"
    )),
    AgePattern("en_age_is", _compile(r"\bage(?:d)?\s*(?:is|of|:)?\s*(\d{1,3})\b(?!\s*(?:-\s*)?(?:years?|months?|days?))")),
    AgePattern("en_age_unit", _compile(r"\bage(?:d)?\s*(?:is|of|:)?\s*(\d{1,3}\s*(?:years?|months?|days?))\b")),
    AgePattern("zh_years", _compile(r"(\d{1,3}\s*周?岁)")),
    # Bare month or day counts are usually symptom durations unless marked as age
    AgePattern("zh_months_old", _compile(r"(\d{1,3}\s*(?:个多月|个月|天))大")),
    AgePattern("zh_born_ago", _compile(r"出生(?:才|已经|刚|刚刚)?\s*(\d{1,3}\s*(?:个多月|个月|天))")),
]

GENDER_KEYWORDS: List[GenderKeywordSet] = [
    GenderKeywordSet(Gender.MALE, frozenset({"boy", "son", "male"}), frozenset({"男孩", "儿子", "男"})),
    GenderKeywordSet(Gender.FEMALE, frozenset({"girl", "daughter", "female"}), frozenset({"女孩", "女儿", "女"})),
]


def clean_name(raw: Optional[str]) -> Optional[str]:
    """
    Normalize a captured name span.

    Returns None for stop words, numbers, empty and over-long captures.
    Latin names get a leading capital; CJK names are kept verbatim.
    """
    if not raw:
        return None
    name = raw.strip()

    if CJK_CHAR.search(name):
        for stop_word in CHINESE_STOP_WORDS:
            index = name.find(stop_word)
            if index != -1:
                name = name[:index]
        name = name.strip()
    else:
        tokens = [t for t in name.split() if t.lower() not in ENGLISH_STOP_WORDS]
        name = " ".join(tokens).strip(" '-")
        name = name.capitalize()

    if not name or name.isdigit() or len(name) > MAX_NAME_LENGTH:
        return None
    return name


class EntityExtractor:
    """
    Extracts a best-effort ExtractionCandidate from dialogue text.

    Every call re-scans the full history, so a fact missed earlier can still
    be picked up later and stable input gives a stable result.
    """

    def __init__(
        self,
        name_patterns: Optional[List[NamePattern]] = None,
        temporal_patterns: Optional[List[TemporalPattern]] = None,
        gender_keywords: Optional[List[GenderKeywordSet]] = None,
    ):
        self.name_patterns = name_patterns if name_patterns is not None else NAME_PATTERNS
        self.temporal_patterns = temporal_patterns if temporal_patterns is not None else TEMPORAL_PATTERNS
        self.gender_keywords = gender_keywords if gender_keywords is not None else GENDER_KEYWORDS

    @staticmethod
    def join_turns(turns: Iterable[Turn]) -> str:
        """Whitespace-joined content of all turns, both roles"""
        return " ".join(turn.content for turn in turns)

    def extract_from_turns(self, turns: Iterable[Turn]) -> ExtractionCandidate:
        return self.extract(self.join_turns(turns))

    def extract(self, text: str) -> ExtractionCandidate:
        """
        Extract name, temporal text and gender.

        Args:
            text: Full concatenated dialogue text

        Returns:
            Candidate whose fields are None where nothing matched
        """
        if not text or not text.strip():
            return ExtractionCandidate()

        raw_temporal = self.extract_temporal(text)
        explicit_date = None
        if raw_temporal and looks_like_date(raw_temporal):
            explicit_date = parse_ambiguous_date(raw_temporal)

        candidate = ExtractionCandidate(
            name=self.extract_name(text),
            raw_temporal_text=raw_temporal,
            explicit_date=explicit_date,
            gender=self.extract_gender(text),
        )
        logger.debug(f"Extracted candidate: {candidate.model_dump()}")
        return candidate

    def extract_name(self, text: str) -> Optional[str]:
        """First rule in priority order whose capture survives cleaning"""
        for rule in self.name_patterns:
            for match in rule.regex.finditer(text):
                name = clean_name(match.group(1))
                if name:
                    return name
        return None

    def extract_temporal(self, text: str) -> Optional[str]:
        """Raw text of the first matching date or age rule"""
        for rule in self.temporal_patterns:
            match = rule.regex.search(text)
            if match:
                return match.group(1).strip()
        return None

    def extract_gender(self, text: str) -> Optional[Gender]:
        # Keyword sets are ordered; when both genders appear the first set (male) wins
        for keyword_set in self.gender_keywords:
            if keyword_set.matches(text):
                return keyword_set.gender
        return None
