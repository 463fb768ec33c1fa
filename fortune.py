"""
Daily fortune data assembly.

Turns the birth profile and a target date into the frozen ``FortuneData``
snapshot that the prompt builder renders.
"""
import json
import re
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from errors import ComputationError, ValidationError
from oracle import CalendarOracle, LuckCycle, LunarCalendarOracle

WEEK_DAYS = ["周日", "周一", "周二", "周三", "周四", "周五", "周六"]

# Label used before the first formal luck cycle starts
PRE_CYCLE_LABEL = "童限"

_YMD_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class BirthProfile(BaseModel):
    """The one person this deployment reads for."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    gender: Literal["male", "female"] = "male"
    birth_date: str = Field("", alias="birthDate", description="YYYY-MM-DD")
    birth_time: str = Field("", alias="birthTime", description="HH:mm")


class FortuneData(BaseModel):
    """Everything the user prompt needs, computed for one target date.

    Serialized with camelCase keys (``targetDate``, ``daYunStartAge``).
    """
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    # 命主信息
    gender: str
    birth_date: str
    birth_time: str
    virtual_age: int

    # 八字
    bazi: List[str]
    day_master: str

    # 大运
    current_da_yun: str
    da_yun_start_age: int
    da_yun_end_age: int

    # 目标日期
    target_date: str
    target_year: int
    week_day: str
    lunar_date: str
    lunar_month: str

    # 流年流月流日
    liu_nian: str
    liu_yue: str
    liu_ri: str
    day_gan: str
    day_zhi: str


def _split_ints(value: str, sep: str, what: str) -> List[int]:
    try:
        return [int(part) for part in value.split(sep)]
    except ValueError as e:
        raise ValidationError(f"Invalid {what}: {value!r}") from e


def parse_date(date_str: str) -> tuple:
    """Split ``YYYY-MM-DD`` into (year, month, day). No range checks."""
    parts = _split_ints(date_str, "-", "date")
    if len(parts) != 3:
        raise ValidationError(f"Invalid date: {date_str!r}")
    return parts[0], parts[1], parts[2]


def parse_time(time_str: str) -> tuple:
    """Split ``HH:mm`` into (hour, minute). No range checks."""
    parts = _split_ints(time_str, ":", "time")
    if len(parts) != 2:
        raise ValidationError(f"Invalid time: {time_str!r}")
    return parts[0], parts[1]


def is_valid_date(date_str: str) -> bool:
    """
    True only for real calendar dates written as ``YYYY-MM-DD``.

    The final check rebuilds the date and compares the ISO form, which catches
    Feb 29 on non-leap years and day 31 of 30-day months.
    """
    if not _YMD_RE.match(date_str):
        return False
    y, m, d = (int(v) for v in date_str.split("-"))
    if not 1 <= m <= 12:
        return False
    if not 1 <= d <= 31:
        return False
    try:
        return date(y, m, d).isoformat() == date_str
    except ValueError:
        return False


def select_luck_cycle(virtual_age: int, cycles: List[LuckCycle]) -> LuckCycle:
    """
    Pick the luck cycle whose inclusive age range contains ``virtual_age``.

    Before the first cycle the 童限 sentinel is returned, spanning
    [1, first start - 1]. If ranges overlap the first match wins.

    An age past the last cycle raises ComputationError instead of falling
    back to the 童限 [1, 10] sentinel, so ``/preview`` and ``/prompt`` answer
    500 for such dates rather than a reading with a childhood luck cycle.
    """
    if not cycles:
        return LuckCycle(start_age=1, end_age=10, gan_zhi=PRE_CYCLE_LABEL)

    first = cycles[0]
    if virtual_age < first.start_age:
        return LuckCycle(start_age=1, end_age=first.start_age - 1, gan_zhi=PRE_CYCLE_LABEL)

    for cycle in cycles:
        if cycle.start_age <= virtual_age <= cycle.end_age:
            return cycle

    raise ComputationError(f"虚岁 {virtual_age} 超出大运范围")


def parse_user_profile(raw: str) -> BirthProfile:
    """Parse the ``USER_PROFILE`` JSON blob."""
    try:
        data = json.loads(raw or "")
    except json.JSONDecodeError as e:
        raise ValidationError(f"USER_PROFILE is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("USER_PROFILE must be a JSON object")

    try:
        return BirthProfile(
            gender=data.get("gender") or "male",
            birthDate=str(data.get("birthDate") or ""),
            birthTime=str(data.get("birthTime") or ""),
        )
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid USER_PROFILE: {e}") from e


def build_daily_fortune_data(
    profile: BirthProfile,
    target_date: str,
    oracle: Optional[CalendarOracle] = None,
) -> FortuneData:
    """
    Build the fortune snapshot for ``target_date``.

    Virtual age is the nominal East-Asian age: target year - birth year + 1,
    regardless of birth month and day.
    """
    oracle = oracle or LunarCalendarOracle()

    birth_year, birth_month, birth_day = parse_date(profile.birth_date)
    hour, minute = parse_time(profile.birth_time)
    eight_char = oracle.eight_char_of(birth_year, birth_month, birth_day, hour, minute)

    gender_flag = 1 if profile.gender == "male" else 0
    cycles = oracle.luck_cycles_of(eight_char, gender_flag)

    target_year, target_month, target_day = parse_date(target_date)
    virtual_age = target_year - birth_year + 1
    current = select_luck_cycle(virtual_age, cycles)

    labels = oracle.calendar_labels_of(target_year, target_month, target_day)
    liu_ri = labels.day_gan_zhi

    try:
        week_day_index = date(target_year, target_month, target_day).isoweekday() % 7
    except ValueError as e:
        raise ComputationError(f"无法转换日期 {target_date}: {e}") from e

    return FortuneData(
        gender="男" if profile.gender == "male" else "女",
        birth_date=profile.birth_date,
        birth_time=profile.birth_time,
        virtual_age=virtual_age,
        bazi=eight_char.pillars,
        day_master=eight_char.day_stem,
        current_da_yun=current.gan_zhi,
        da_yun_start_age=current.start_age,
        da_yun_end_age=current.end_age,
        target_date=target_date,
        target_year=target_year,
        week_day=WEEK_DAYS[week_day_index],
        lunar_date=f"{labels.lunar_year}年{labels.lunar_month}月{labels.lunar_day}",
        lunar_month=labels.lunar_month,
        liu_nian=labels.year_gan_zhi,
        liu_yue=labels.month_gan_zhi,
        liu_ri=liu_ri,
        day_gan=liu_ri[0],
        day_zhi=liu_ri[1],
    )
