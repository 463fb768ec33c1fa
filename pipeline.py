"""
Daily fortune pipeline: compute, prompt, call the model, format, push.
"""
import logging
from typing import Optional

from pydantic import BaseModel

from bark import BarkConfig, BarkOptions, format_to_push, send_bark_notification
from config import Settings, get_cst_today
from errors import ValidationError
from fortune import build_daily_fortune_data, is_valid_date, parse_user_profile
from llm_client import AIConfig, ChatOptions, chat_completion
from prompts import build_messages
from text_utils import extract_payload

logger = logging.getLogger(__name__)


class PipelineOutcome(BaseModel):
    success: bool
    message: str


def execute_daily_fortune(settings: Settings, target_date: Optional[str] = None) -> PipelineOutcome:
    """
    Run one end-to-end daily fortune push.

    Stops at the first failing step. Never raises: every failure comes back
    as ``PipelineOutcome(success=False)``.
    """
    try:
        user_profile = parse_user_profile(settings.user_profile)

        target_date = target_date or get_cst_today()
        if not is_valid_date(target_date):
            raise ValidationError(f"Invalid date: {target_date!r}. Expected YYYY-MM-DD")

        logger.info("[DailyFortune] 开始计算命主的 %s 运势", target_date)

        # 1. 计算命理数据
        fortune_data = build_daily_fortune_data(user_profile, target_date)
        logger.info(
            "[DailyFortune] 八字: %s, 流日: %s",
            " ".join(fortune_data.bazi),
            fortune_data.liu_ri,
        )

        # 2. 调用 AI 获取运势分析
        ai_config = AIConfig(
            api_key=settings.ai_api_key,
            base_url=settings.ai_base_url,
            model=settings.ai_model,
        )
        ai_response = chat_completion(
            ai_config,
            build_messages(fortune_data, settings.output_format),
            ChatOptions(temperature=settings.temperature, max_tokens=settings.max_tokens),
        )

        # 3. 提取结构化内容并转换为推送格式
        payload = extract_payload(ai_response)
        notification = format_to_push(payload, settings.output_format)
        logger.info("[DailyFortune] AI 分析完成: %s", notification.title)

        # 4. 发送 Bark 推送
        send_bark_notification(
            BarkConfig(server_url=settings.bark_server_url, device_key=settings.bark_device_key),
            notification,
            BarkOptions(group=settings.bark_group, icon=settings.bark_icon, sound=settings.bark_sound),
        )
        logger.info("[DailyFortune] 推送成功")

        return PipelineOutcome(
            success=True,
            message=f"成功推送 {target_date} 运势: {notification.title}",
        )
    except Exception as e:
        logger.error("[DailyFortune] 执行失败: %s", e)
        return PipelineOutcome(success=False, message=f"执行失败: {e}")
