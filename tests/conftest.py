import os
import sys

import pytest

# Project modules live at the repository root
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fortune import FortuneData  # noqa: E402

ENV_KEYS = [
    "AI_API_KEY", "AI_BASE_URL", "AI_MODEL", "AI_OUTPUT_FORMAT", "AI_TEMPERATURE",
    "AI_MAX_TOKENS", "SAFE_PATH", "BARK_SERVER_URL", "BARK_DEVICE_KEY", "BARK_GROUP",
    "BARK_ICON", "BARK_SOUND", "USER_PROFILE", "FORTUNE_CRON", "SCHEDULER_ENABLED",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Tests start from an empty configuration."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def fortune_data() -> FortuneData:
    return FortuneData(
        gender="male",
        birth_date="2003-01-06",
        birth_time="02:00",
        virtual_age=23,
        bazi=["癸未", "乙丑", "壬辰", "辛丑"],
        day_master="壬",
        current_da_yun="丙寅",
        da_yun_start_age=17,
        da_yun_end_age=27,
        target_date="2025-12-28",
        target_year=2025,
        week_day="周日",
        lunar_date="农历十一月初九",
        lunar_month="十一",
        liu_nian="乙巳",
        liu_yue="戊子",
        liu_ri="壬辰",
        day_gan="壬",
        day_zhi="辰",
    )


@pytest.fixture
def fortune_json() -> str:
    return (
        '{"date": "2025-12-28", "ganZhi": "壬辰", "luck": 7, "theme": "财运亨通",'
        ' "summary": "今日偏财星临门，适合投资理财、商业谈判。",'
        ' "career": "工作顺利，贵人相助，适合推进重要项目",'
        ' "wealth": "偏财运佳，可小额投机，忌大额借贷",'
        ' "relationship": "人际和谐，利于社交，桃花运一般",'
        ' "health": "精神饱满，注意肾脏，忌熬夜",'
        ' "advice": "宜：签约、投资、社交、出行。忌：争执、熬夜、动土。",'
        ' "luckyColor": "蓝色", "luckyDirection": "北方", "luckyNumber": 1}'
    )
