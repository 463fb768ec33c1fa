"""
Bark push notifications: payload formatting and delivery.
"""
import json
import logging
from typing import Any, Optional

import httpx
import yaml
from pydantic import BaseModel, ConfigDict

from config import DEFAULT_PUSH_GROUP, OutputFormat
from errors import ParseError, RemoteAPIError

logger = logging.getLogger(__name__)

TITLE_PREFIX = "今日运势·"

# Markdown line break inside a paragraph
HARD_BREAK = "  "


class BarkConfig(BaseModel):
    server_url: str  # e.g. https://api.day.app
    device_key: str


class BarkOptions(BaseModel):
    group: str = DEFAULT_PUSH_GROUP
    icon: Optional[str] = None
    sound: Optional[str] = None


class FortuneResult(BaseModel):
    """Fields the model is asked to return. Nothing is required."""
    model_config = ConfigDict(extra="allow")

    date: Any = None
    ganZhi: Any = None
    luck: Any = None
    theme: Any = None
    summary: Any = None
    career: Any = None
    wealth: Any = None
    relationship: Any = None
    health: Any = None
    advice: Any = None
    luckyColor: Any = None
    luckyDirection: Any = None
    luckyNumber: Any = None


class PushNotification(BaseModel):
    title: str
    subtitle: str
    markdown: str


def _show(value: Any) -> str:
    # Missing fields are printed, not dropped
    return "null" if value is None else str(value)


def parse_fortune_result(text: str, output_format: OutputFormat) -> FortuneResult:
    """Parse extracted model output. Raises ParseError on malformed text."""
    try:
        if OutputFormat(output_format) is OutputFormat.JSON:
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ParseError(f"AI 输出不是合法的 {OutputFormat(output_format).value.upper()}: {e}") from e

    if not isinstance(data, dict):
        raise ParseError(f"AI 输出应为对象，实际为 {type(data).__name__}")
    return FortuneResult(**{str(k): v for k, v in data.items()})


def format_to_push(text: str, output_format: OutputFormat = OutputFormat.YAML) -> PushNotification:
    """Turn the model's structured answer into a push notification."""
    data = parse_fortune_result(text, output_format)

    # Fixed prefix keeps the person's name out of the lock screen
    title = f"{TITLE_PREFIX}{_show(data.theme)}"

    subtitle = f"{_show(data.date)} {_show(data.ganZhi)} | 运势 {_show(data.luck)}/10"

    # Serious tone: no emoji, no horizontal rules
    markdown = "\n".join([
        f"**综合分析**{HARD_BREAK}",
        f"{_show(data.summary)}{HARD_BREAK}",
        "",
        f"**事业**: {_show(data.career)}{HARD_BREAK}",
        f"**财运**: {_show(data.wealth)}{HARD_BREAK}",
        f"**人际**: {_show(data.relationship)}{HARD_BREAK}",
        f"**健康**: {_show(data.health)}{HARD_BREAK}",
        "",
        f"{_show(data.advice)}{HARD_BREAK}",
        "",
        f"幸运色: {_show(data.luckyColor)} | 方位: {_show(data.luckyDirection)} | 数字: {_show(data.luckyNumber)}",
    ])

    return PushNotification(title=title, subtitle=subtitle, markdown=markdown)


def send_bark_notification(
    config: BarkConfig,
    notification: PushNotification,
    options: Optional[BarkOptions] = None,
    client: Optional[httpx.Client] = None,
) -> bool:
    """
    POST the notification to ``{server_url}/push``.

    Raises:
        RemoteAPIError: non-2xx status or transport failure.
    """
    options = options or BarkOptions()

    request_body = {
        "title": notification.title,
        "subtitle": notification.subtitle,
        "markdown": notification.markdown,
        "device_key": config.device_key,
        "group": options.group or DEFAULT_PUSH_GROUP,
        "icon": options.icon,
        "sound": options.sound,
        "level": "active",
        "isArchive": 1,
    }
    request_body = {k: v for k, v in request_body.items() if v is not None}

    url = f"{config.server_url}/push"
    try:
        if client is None:
            with httpx.Client() as own_client:
                response = own_client.post(url, json=request_body)
        else:
            response = client.post(url, json=request_body)
    except httpx.HTTPError as e:
        raise RemoteAPIError(f"Bark push failed: {e}") from e

    if not response.is_success:
        raise RemoteAPIError(f"Bark push failed: {response.status_code} - {response.text}")

    logger.debug("bark push accepted status=%s", response.status_code)
    return True
