"""
Calendar oracle: four pillars, luck cycles and sexagenary labels.

The fortune assembler talks to the ``CalendarOracle`` protocol only. The
default implementation is backed by lunar-python.
"""
from datetime import datetime
from typing import List, Protocol

from lunar_python import Solar
from pydantic import BaseModel, ConfigDict, Field

from errors import ComputationError

# Number of cycles requested from lunar-python. Index 0 is the childhood
# period before the first formal cycle and is dropped, leaving 11 decades.
DA_YUN_COUNT = 12


class EightChar(BaseModel):
    """Four pillars of a birth instant."""
    model_config = ConfigDict(frozen=True)

    year_pillar: str = Field(..., description="Year pillar (年柱)")
    month_pillar: str = Field(..., description="Month pillar (月柱)")
    day_pillar: str = Field(..., description="Day pillar (日柱)")
    hour_pillar: str = Field(..., description="Hour pillar (时柱)")
    day_stem: str = Field(..., description="Day Master (日主)")
    birth: datetime = Field(..., description="Birth instant the pillars were cast for")

    @property
    def pillars(self) -> List[str]:
        return [self.year_pillar, self.month_pillar, self.day_pillar, self.hour_pillar]


class LuckCycle(BaseModel):
    """One ten-year luck cycle (大运), age bounds inclusive."""
    model_config = ConfigDict(frozen=True)

    start_age: int
    end_age: int
    gan_zhi: str


class CalendarLabels(BaseModel):
    """Sexagenary and lunar labels of a single solar date."""
    model_config = ConfigDict(frozen=True)

    year_gan_zhi: str = Field(..., description="流年")
    month_gan_zhi: str = Field(..., description="流月")
    day_gan_zhi: str = Field(..., description="流日")
    lunar_year: str
    lunar_month: str
    lunar_day: str


class CalendarOracle(Protocol):
    def eight_char_of(self, year: int, month: int, day: int, hour: int, minute: int) -> EightChar:
        ...

    def luck_cycles_of(self, eight_char: EightChar, gender_flag: int) -> List[LuckCycle]:
        ...

    def calendar_labels_of(self, year: int, month: int, day: int) -> CalendarLabels:
        ...


class LunarCalendarOracle:
    """CalendarOracle backed by lunar-python."""

    def eight_char_of(self, year: int, month: int, day: int, hour: int, minute: int) -> EightChar:
        try:
            birth = datetime(year, month, day, hour, minute)
            solar = Solar.fromYmdHms(year, month, day, hour, minute, 0)
            eight_char = solar.getLunar().getEightChar()
            return EightChar(
                year_pillar=eight_char.getYear(),
                month_pillar=eight_char.getMonth(),
                day_pillar=eight_char.getDay(),
                hour_pillar=eight_char.getTime(),
                day_stem=eight_char.getDayGan(),
                birth=birth,
            )
        except Exception as e:
            raise ComputationError(
                f"无法排盘 {year}-{month}-{day} {hour}:{minute}: {e}"
            ) from e

    def luck_cycles_of(self, eight_char: EightChar, gender_flag: int) -> List[LuckCycle]:
        """
        Formal luck cycles ordered by age.

        ``gender_flag`` follows lunar-python: 1 for male, 0 for female.
        """
        b = eight_char.birth
        try:
            solar = Solar.fromYmdHms(b.year, b.month, b.day, b.hour, b.minute, 0)
            yun = solar.getLunar().getEightChar().getYun(gender_flag)
            return [
                LuckCycle(
                    start_age=dy.getStartAge(),
                    end_age=dy.getEndAge(),
                    gan_zhi=dy.getGanZhi(),
                )
                for dy in yun.getDaYun(DA_YUN_COUNT)
                if dy.getIndex() > 0
            ]
        except Exception as e:
            raise ComputationError(f"无法计算大运: {e}") from e

    def calendar_labels_of(self, year: int, month: int, day: int) -> CalendarLabels:
        try:
            # lunar-python does not reject impossible dates on its own
            datetime(year, month, day)
            lunar = Solar.fromYmd(year, month, day).getLunar()
            return CalendarLabels(
                year_gan_zhi=lunar.getYearInGanZhiExact(),
                month_gan_zhi=lunar.getMonthInGanZhiExact(),
                day_gan_zhi=lunar.getDayInGanZhi(),
                lunar_year=lunar.getYearInChinese(),
                lunar_month=lunar.getMonthInChinese(),
                lunar_day=lunar.getDayInChinese(),
            )
        except Exception as e:
            raise ComputationError(f"无法转换日期 {year}-{month}-{day}: {e}") from e
