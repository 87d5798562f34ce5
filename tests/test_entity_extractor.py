import re
from datetime import date

import pytest

from core.conversation.understanding import EntityExtractor, NamePattern, clean_name
from core.conversation.understanding.entity_extractor import GENDER_KEYWORDS, NAME_PATTERNS, TEMPORAL_PATTERNS
from models.schemas import Gender, Turn, TurnRole


@pytest.fixture
def extractor():
    return EntityExtractor()


def test_son_with_age_phrase(extractor, normalizer):
    candidate = extractor.extract("my son is 3 years old")
    assert candidate.gender == Gender.MALE
    assert candidate.raw_temporal_text == "3 years"
    assert candidate.explicit_date is None
    assert candidate.name is None
    assert normalizer.normalize(candidate.raw_temporal_text) == date(2021, 6, 15)


def test_born_on_sets_explicit_date(extractor):
    candidate = extractor.extract("She was born on 2020-02-29")
    assert candidate.raw_temporal_text == "2020-02-29"
    assert candidate.explicit_date == date(2020, 2, 29)


def test_explicit_date_preferred_over_age_phrase(extractor):
    candidate = extractor.extract("she is 3 years old, born 2021/01/10")
    assert candidate.explicit_date == date(2021, 1, 10)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("My daughter's name is Lily", "Lily"),
        ("my child is named tom", "Tom"),
        ("Her name is EMMA", "Emma"),
        ("Tom is my kid", "Tom"),
        ("my son is sick. his name is jack", "Jack"),
        ("我儿子叫小明，今年3岁", "小明"),
        ("我儿子叫小明今年3岁", "小明"),
        ("她叫小红", "小红"),
        ("小美是我的女儿", "小美"),
    ],
)
def test_name_rules(extractor, text, expected):
    assert extractor.extract(text).name == expected


@pytest.mark.parametrize("text", ["this is my son", "my baby is sick", "my kid is having a rough night"])
def test_stop_words_are_not_names(extractor, text):
    assert extractor.extract(text).name is None


def test_first_rule_in_priority_order_wins(extractor):
    assert extractor.extract("the baby is called Anna and her name is Bella").name == "Anna"


@pytest.mark.parametrize(
    "text,expected",
    [
        ("age is 4", "4"),
        ("aged 2", "2"),
        ("she is 8 months old", "8 months"),
        ("a 10-day-old baby", "10-day"),
        ("宝宝3岁了", "3岁"),
        ("宝宝8个月大", "8个月"),
        ("出生才20天", "20天"),
    ],
)
def test_age_phrases(extractor, text, expected):
    assert extractor.extract(text).raw_temporal_text == expected


def test_chinese_birth_date(extractor):
    candidate = extractor.extract("宝宝出生日期是2021年3月5日")
    assert candidate.raw_temporal_text == "2021年3月5日"
    assert candidate.explicit_date == date(2021, 3, 5)
    assert candidate.name is None
    assert candidate.gender is None


@pytest.mark.parametrize("text", ["孩子发烧3天了", "he has had a cough for 3 days"])
def test_symptom_durations_are_not_ages(extractor, text):
    assert extractor.extract(text).raw_temporal_text is None


@pytest.mark.parametrize(
    "text,expected",
    [
        ("We have a little girl", Gender.FEMALE),
        ("my daughter has a fever", Gender.FEMALE),
        ("female, 2 years old", Gender.FEMALE),
        ("我儿子", Gender.MALE),
        ("是个女孩", Gender.FEMALE),
        ("I have a son and a daughter", Gender.MALE),
        ("For some reason she keeps coughing", None),
    ],
)
def test_gender_keywords(extractor, text, expected):
    assert extractor.extract(text).gender == expected


def test_empty_text(extractor):
    candidate = extractor.extract("   ")
    assert not candidate.has_any()


def test_extraction_is_deterministic(extractor):
    text = "My daughter's name is Lily and she was born on 2021-03-05"
    assert extractor.extract(text) == extractor.extract(text)


def test_extract_from_turns_scans_both_roles(extractor):
    turns = [
        Turn(role=TurnRole.USER, content="Hi, my daughter has a fever"),
        Turn(role=TurnRole.ASSISTANT, content="Could you please tell me your child's name?"),
        Turn(role=TurnRole.USER, content="Her name is Mia"),
    ]
    candidate = extractor.extract_from_turns(turns)
    assert candidate.name == "Mia"
    assert candidate.gender == Gender.FEMALE


def test_custom_rule_list():
    extractor = EntityExtractor(
        name_patterns=[NamePattern("nickname", re.compile(r"nicknamed\s+(\w+)", re.IGNORECASE))],
        temporal_patterns=[],
        gender_keywords=[],
    )
    candidate = extractor.extract("my son is nicknamed bo and is 3 years old")
    assert candidate.name == "Bo"
    assert candidate.raw_temporal_text is None
    assert candidate.gender is None


def test_rule_lists_have_unique_keys():
    for rules in (NAME_PATTERNS, TEMPORAL_PATTERNS):
        keys = [rule.key for rule in rules]
        assert len(keys) == len(set(keys))
    assert GENDER_KEYWORDS[0].gender == Gender.MALE


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("tOM", "Tom"),
        ("小明", "小明"),
        ("小明今年", "小明"),
        ("the", None),
        ("123", None),
        ("", None),
        (None, None),
        ("x" * 31, None),
    ],
)
def test_clean_name(raw, expected):
    assert clean_name(raw) == expected


def test_leap_day_birth_date_end_to_end(extractor, normalizer):
    candidate = extractor.extract("born on 2020-02-29")
    date_of_birth = normalizer.normalize(candidate.raw_temporal_text, candidate.explicit_date)
    assert date_of_birth == date(2020, 2, 29)
    age = normalizer.age(date_of_birth)
    assert (age.years, age.months, age.days) == (4, 3, 17)


@pytest.mark.parametrize(
    "text",
    [
        "my son is tired. his name is Tom",
        "my son is feverish. his name is Tom",
        "my son is hot and his name is Tom",
        "the baby is fussy, his name is Tom",
    ],
)
def test_descriptive_words_do_not_shadow_the_name(extractor, text):
    assert extractor.extract(text).name == "Tom"
