from datetime import datetime

import pytest

from errors import ComputationError, ValidationError
from fortune import (
    PRE_CYCLE_LABEL,
    BirthProfile,
    build_daily_fortune_data,
    is_valid_date,
    parse_date,
    parse_time,
    parse_user_profile,
    select_luck_cycle,
)
from oracle import CalendarLabels, EightChar, LuckCycle, LunarCalendarOracle


class FakeOracle:
    """Fixed answers, so assembly can be checked without a calendar."""

    def __init__(self, cycles=None):
        self.cycles = cycles if cycles is not None else [
            LuckCycle(start_age=7, end_age=16, gan_zhi="甲子"),
            LuckCycle(start_age=17, end_age=26, gan_zhi="乙丑"),
            LuckCycle(start_age=27, end_age=36, gan_zhi="丙寅"),
        ]
        self.gender_flags = []

    def eight_char_of(self, year, month, day, hour, minute):
        return EightChar(
            year_pillar="癸未", month_pillar="乙丑", day_pillar="壬辰", hour_pillar="辛丑",
            day_stem="壬", birth=datetime(year, month, day, hour, minute),
        )

    def luck_cycles_of(self, eight_char, gender_flag):
        self.gender_flags.append(gender_flag)
        return self.cycles

    def calendar_labels_of(self, year, month, day):
        return CalendarLabels(
            year_gan_zhi="乙巳", month_gan_zhi="戊子", day_gan_zhi="辛未",
            lunar_year="二〇二五", lunar_month="冬", lunar_day="初九",
        )


@pytest.mark.parametrize("value", [
    "2025-12-28", "2024-02-29", "2000-02-29", "1999-12-31", "2025-04-30",
])
def test_is_valid_date_accepts_real_dates(value):
    assert is_valid_date(value)


@pytest.mark.parametrize("value", [
    "2025-99-99", "2025-02-29", "1900-02-29", "2025-04-31", "2025-00-10",
    "2025-01-00", "2025-1-1", "25-01-01", "2025/01/01", "", "abcd-ef-gh",
    "2025-01-01T00:00", " 2025-01-01",
])
def test_is_valid_date_rejects_everything_else(value):
    assert not is_valid_date(value)


def test_parse_date_and_time():
    assert parse_date("2003-01-06") == (2003, 1, 6)
    # Range checks are not parse_date's job
    assert parse_date("2025-99-99") == (2025, 99, 99)
    assert parse_time("02:00") == (2, 0)
    assert parse_time("23:59") == (23, 59)


@pytest.mark.parametrize("value", ["", "2025-01", "2025-ab-01"])
def test_parse_date_rejects_malformed(value):
    with pytest.raises(ValidationError):
        parse_date(value)


@pytest.mark.parametrize("value", ["", "12", "ab:cd", "12:00:00"])
def test_parse_time_rejects_malformed(value):
    with pytest.raises(ValidationError):
        parse_time(value)


CYCLES = [
    LuckCycle(start_age=5, end_age=14, gan_zhi="甲寅"),
    LuckCycle(start_age=15, end_age=24, gan_zhi="乙卯"),
    LuckCycle(start_age=25, end_age=34, gan_zhi="丙辰"),
]


@pytest.mark.parametrize("age", range(5, 35))
def test_select_luck_cycle_contains_age(age):
    cycle = select_luck_cycle(age, CYCLES)
    assert cycle.start_age <= age <= cycle.end_age
    assert sum(1 for c in CYCLES if c.start_age <= age <= c.end_age) == 1


@pytest.mark.parametrize("age", [-3, 0, 1, 4])
def test_select_luck_cycle_before_first_cycle(age):
    cycle = select_luck_cycle(age, CYCLES)
    assert cycle.gan_zhi == PRE_CYCLE_LABEL
    assert (cycle.start_age, cycle.end_age) == (1, 4)


def test_select_luck_cycle_first_match_wins_on_overlap():
    overlapping = [
        LuckCycle(start_age=1, end_age=10, gan_zhi="甲子"),
        LuckCycle(start_age=10, end_age=19, gan_zhi="乙丑"),
    ]
    assert select_luck_cycle(10, overlapping).gan_zhi == "甲子"


def test_select_luck_cycle_past_last_cycle():
    with pytest.raises(ComputationError):
        select_luck_cycle(35, CYCLES)


def test_select_luck_cycle_without_cycles():
    cycle = select_luck_cycle(3, [])
    assert cycle.gan_zhi == PRE_CYCLE_LABEL
    assert (cycle.start_age, cycle.end_age) == (1, 10)


def test_parse_user_profile():
    profile = parse_user_profile('{"gender":"female","birthDate":"1990-01-01","birthTime":"12:00"}')
    assert profile == BirthProfile(gender="female", birth_date="1990-01-01", birth_time="12:00")


def test_parse_user_profile_defaults_to_male():
    profile = parse_user_profile('{"birthDate":"1990-01-01","birthTime":"12:00"}')
    assert profile.gender == "male"


@pytest.mark.parametrize("raw", ["", "not json", "[1, 2]", '{"gender": "other"}'])
def test_parse_user_profile_rejects_bad_input(raw):
    with pytest.raises(ValidationError):
        parse_user_profile(raw)


def test_build_daily_fortune_data_with_fake_oracle():
    oracle = FakeOracle()
    profile = BirthProfile(gender="male", birth_date="2003-01-06", birth_time="02:00")

    data = build_daily_fortune_data(profile, "2025-12-28", oracle=oracle)

    assert oracle.gender_flags == [1]
    assert data.gender == "男"
    # Nominal age ignores month and day
    assert data.virtual_age == 23
    assert data.bazi == ["癸未", "乙丑", "壬辰", "辛丑"]
    assert data.day_master == "壬"
    assert (data.current_da_yun, data.da_yun_start_age, data.da_yun_end_age) == ("乙丑", 17, 26)
    assert data.target_year == 2025
    assert data.week_day == "周日"
    assert data.lunar_date == "二〇二五年冬月初九"
    assert data.lunar_month == "冬"
    assert (data.liu_nian, data.liu_yue, data.liu_ri) == ("乙巳", "戊子", "辛未")
    assert (data.day_gan, data.day_zhi) == ("辛", "未")


def test_build_daily_fortune_data_female_before_first_cycle():
    oracle = FakeOracle()
    profile = BirthProfile(gender="female", birth_date="2020-05-01", birth_time="08:30")

    data = build_daily_fortune_data(profile, "2025-12-29", oracle=oracle)

    assert oracle.gender_flags == [0]
    assert data.gender == "女"
    assert data.virtual_age == 6
    assert data.current_da_yun == PRE_CYCLE_LABEL
    assert (data.da_yun_start_age, data.da_yun_end_age) == (1, 6)
    assert data.week_day == "周一"


def test_build_daily_fortune_data_rejects_impossible_target():
    profile = BirthProfile(gender="male", birth_date="2003-01-06", birth_time="02:00")
    with pytest.raises(ComputationError):
        build_daily_fortune_data(profile, "2025-99-99")


def test_build_daily_fortune_data_rejects_malformed_birth_time():
    profile = BirthProfile(gender="male", birth_date="2003-01-06", birth_time="noon")
    with pytest.raises(ValidationError):
        build_daily_fortune_data(profile, "2025-12-28", oracle=FakeOracle())


def test_lunar_oracle_four_pillars():
    eight_char = LunarCalendarOracle().eight_char_of(2000, 1, 1, 12, 0)
    # Before 立春 and 小寒: still 己卯 year, 丙子 month
    assert eight_char.pillars == ["己卯", "丙子", "戊午", "戊午"]
    assert eight_char.day_stem == "戊"


def test_lunar_oracle_luck_cycles_are_contiguous():
    oracle = LunarCalendarOracle()
    eight_char = oracle.eight_char_of(2000, 1, 1, 12, 0)

    male = oracle.luck_cycles_of(eight_char, 1)
    female = oracle.luck_cycles_of(eight_char, 0)

    # Yin year: male counts backwards from the month pillar, female forwards
    assert male[0].gan_zhi == "乙亥"
    assert female[0].gan_zhi == "丁丑"
    assert len(male) == 11
    for prev, cur in zip(male, male[1:]):
        assert cur.start_age == prev.end_age + 1


def test_lunar_oracle_calendar_labels():
    labels = LunarCalendarOracle().calendar_labels_of(2025, 12, 28)
    assert labels.year_gan_zhi == "乙巳"
    assert labels.month_gan_zhi == "戊子"
    assert labels.day_gan_zhi == "辛未"


def test_lunar_oracle_rejects_impossible_date():
    with pytest.raises(ComputationError):
        LunarCalendarOracle().calendar_labels_of(2025, 2, 29)


def test_build_daily_fortune_data_end_to_end():
    profile = BirthProfile(gender="male", birth_date="2000-01-01", birth_time="12:00")

    data = build_daily_fortune_data(profile, "2025-12-28")

    assert data.bazi == ["己卯", "丙子", "戊午", "戊午"]
    assert data.virtual_age == 26
    assert data.da_yun_start_age <= 26 <= data.da_yun_end_age
    assert data.liu_ri == "辛未"
    assert data.week_day == "周日"
    assert data.lunar_date.startswith("二〇二五年")
