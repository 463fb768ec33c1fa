"""
Prompts for the daily fortune reading.

The system prompt carries the persona and the output schema; the user prompt
carries the pre-computed chart so the model never re-derives pillars itself.
"""
from typing import Dict, List

from config import OutputFormat
from fortune import FortuneData

# 系统指令 - 每日运势命理师角色设定
_PERSONA = """
# Role (角色)
你是一位精通《渊海子平》《滴天髓》《穷通宝鉴》的子平八字命理师，负责为命主撰写**当日运势简报**。

# Rules (规则)
1. 八字四柱、大运、流年、流月、流日均已由程序排定，**严禁重新排盘或改动任何干支**。
2. 以日主为核心，结合流日干支与原局、大运、流年的生克刑冲合害作判断，只给出概率最大的结论。
3. 语气严肃克制，像一份专业简报：不使用 emoji，不使用分割线，不写开场白和客套话。
4. 每个字段一到两句话，具体、可执行，避免放之四海而皆准的空话。
5. 严禁预测寿元，严禁医疗诊断，严禁提供彩票号码或诱导投机赌博。
6. 评分 luck 为 1-10 的整数，5 为平，越高越吉。
"""

_FIELDS = """
字段说明：
- date: 目标日期 (YYYY-MM-DD)
- ganZhi: 流日干支
- luck: 综合评分 (1-10 整数)
- theme: 今日主题，四字以内
- summary: 综合分析，两到三句
- career: 事业
- wealth: 财运
- relationship: 人际
- health: 健康
- advice: 宜忌建议，格式为"宜：...。忌：...。"
- luckyColor: 幸运色
- luckyDirection: 幸运方位
- luckyNumber: 幸运数字 (整数)
"""

_JSON_SCHEMA = """
# Output (输出格式)
只输出一个 JSON 对象，不要输出任何其他文字：
{
  "date": "2025-12-28",
  "ganZhi": "壬辰",
  "luck": 7,
  "theme": "财运亨通",
  "summary": "...",
  "career": "...",
  "wealth": "...",
  "relationship": "...",
  "health": "...",
  "advice": "宜：...。忌：...。",
  "luckyColor": "蓝色",
  "luckyDirection": "北方",
  "luckyNumber": 1
}
"""

_YAML_SCHEMA = """
# Output (输出格式)
只输出一个 YAML 文档，不要输出任何其他文字，字符串值一律使用双引号：
date: "2025-12-28"
ganZhi: "壬辰"
luck: 7
theme: "财运亨通"
summary: "..."
career: "..."
wealth: "..."
relationship: "..."
health: "..."
advice: "宜：...。忌：...。"
luckyColor: "蓝色"
luckyDirection: "北方"
luckyNumber: 1
"""

SYSTEM_PROMPTS: Dict[OutputFormat, str] = {
    OutputFormat.JSON: (_PERSONA + _JSON_SCHEMA + _FIELDS).strip(),
    OutputFormat.YAML: (_PERSONA + _YAML_SCHEMA + _FIELDS).strip(),
}


def get_system_prompt(output_format: OutputFormat = OutputFormat.YAML) -> str:
    return SYSTEM_PROMPTS[OutputFormat(output_format)]


def build_user_prompt(data: FortuneData, output_format: OutputFormat = OutputFormat.YAML) -> str:
    """Render the per-day user prompt. Output is stable for identical input."""
    format_name = OutputFormat(output_format).value.upper()
    year_pillar, month_pillar, day_pillar, hour_pillar = data.bazi

    return f"""请为命主生成【{data.target_date}】的运势分析。

## 目标日期（已计算，禁止改动）
阳历: {data.target_date} {data.week_day}
农历: {data.lunar_date}
流日干支: {data.liu_ri}

## 命主信息
性别: {data.gender}
出生: {data.birth_date} {data.birth_time}
当前虚岁: {data.virtual_age}岁

## 八字四柱（已排盘，禁止改动）
年柱: {year_pillar}
月柱: {month_pillar}
日柱: {day_pillar}  ← 日主: {data.day_master}
时柱: {hour_pillar}

## 当前运势周期（已计算，禁止改动）
大运: {data.current_da_yun} ({data.da_yun_start_age}-{data.da_yun_end_age}岁)
流年: {data.liu_nian} ({data.target_year}年)
流月: {data.liu_yue} (农历{data.lunar_month}月)

## 今日干支信息
流日干: {data.day_gan}
流日支: {data.day_zhi}

请严格按照系统提示词格式输出今日运势 {format_name}。"""


def build_messages(data: FortuneData, output_format: OutputFormat = OutputFormat.YAML) -> List[dict]:
    """System + user messages for one chat completion call."""
    return [
        {"role": "system", "content": get_system_prompt(output_format)},
        {"role": "user", "content": build_user_prompt(data, output_format)},
    ]
