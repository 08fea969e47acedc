"""
Care plan 文件下载。

订单创建成功后触发，与订单结果互相独立：
下载失败只体现在 ArtifactResult.ok / message 上，
不会改变订单的 Success，也不会触发重新提交。

本模块对外从不抛异常（save() 对失败结果调用除外）。
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Optional

import httpx

from . import settings
from .classifier import NETWORK_ERROR_MESSAGE, is_json_content_type
from .exceptions import ArtifactError
from .transport import TransportFailure

logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "text/plain": ".txt",
    "text/markdown": ".md",
    "application/pdf": ".pdf",
    "application/json": ".json",
}


def artifact_filename(patient_id: Any, order_id: Any, content_type: str = "", today: Optional[date] = None) -> str:
    """careplan_{patient_id}_{order_id}_{YYYYMMDD}{ext}"""
    today = today or date.today()
    media_type = (content_type or "").split(";")[0].strip().lower()
    ext = _EXTENSIONS.get(media_type, ".txt")
    return f"careplan_{patient_id}_{order_id}_{today.strftime('%Y%m%d')}{ext}"


@dataclass(frozen=True)
class ArtifactResult:
    ok: bool
    patient_id: Any
    order_id: Any
    filename: str = ""
    content: bytes = b""
    content_type: str = ""
    message: str = ""

    def save(self, directory: Optional[Path] = None) -> Path:
        """把文件写到 directory（默认 settings.DOWNLOAD_DIR），返回完整路径。"""
        if not self.ok:
            raise ArtifactError(
                message=f"Care plan is not available: {self.message}",
                detail={"patient_id": self.patient_id, "order_id": self.order_id},
            )
        target_dir = Path(directory or settings.DOWNLOAD_DIR)
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / self.filename
        path.write_bytes(self.content)
        logger.info("[Artifact] 已保存 %s (%d bytes)", path, len(self.content))
        return path


def _failure_message(response: httpx.Response) -> str:
    """失败响应 → 一行消息。JSON 取 error / detail / message，否则取纯文本。"""
    fallback = f"Failed to download care plan (status {response.status_code})"

    if is_json_content_type(response.headers.get("content-type", "")):
        try:
            body = response.json()
        except ValueError:
            return fallback
        if isinstance(body, dict):
            for key in ("error", "detail", "message"):
                value = body.get(key)
                if isinstance(value, str) and value:
                    return value
        return fallback

    text = response.text.strip()
    return text[:500] if text else fallback


async def fetch_care_plan(
    transport,
    patient_id: Any,
    order_id: Any,
    today: Optional[date] = None,
    deadline: Optional[float] = None,
) -> ArtifactResult:
    """
    GET /patients/{patient_id}/orders/{order_id}/care-plan

    transport 需提供 async fetch_care_plan(patient_id, order_id) → Delivery。
    """
    logger.info("[Artifact] 开始下载 patient_id=%s order_id=%s", patient_id, order_id)

    try:
        delivery = await asyncio.wait_for(
            transport.fetch_care_plan(patient_id, order_id),
            timeout=deadline or settings.DEADLINE,
        )
    except asyncio.TimeoutError:
        delivery = TransportFailure(cause="care plan download timed out", timed_out=True)
    except Exception as exc:
        # 组件边界：任何异常都转成失败结果，不影响订单结果
        logger.exception("[Artifact] 下载时出现未预期异常")
        return ArtifactResult(ok=False, patient_id=patient_id, order_id=order_id, message=str(exc))

    if isinstance(delivery, TransportFailure):
        logger.warning("[Artifact] patient_id=%s order_id=%s 未收到响应: %s", patient_id, order_id, delivery.cause)
        return ArtifactResult(
            ok=False, patient_id=patient_id, order_id=order_id, message=NETWORK_ERROR_MESSAGE,
        )

    if not delivery.is_success:
        message = _failure_message(delivery)
        logger.warning(
            "[Artifact] patient_id=%s order_id=%s 下载失败 status=%d: %s",
            patient_id, order_id, delivery.status_code, message,
        )
        return ArtifactResult(ok=False, patient_id=patient_id, order_id=order_id, message=message)

    content_type = delivery.headers.get("content-type", "")
    result = ArtifactResult(
        ok=True,
        patient_id=patient_id,
        order_id=order_id,
        filename=artifact_filename(patient_id, order_id, content_type, today=today),
        content=delivery.content,
        content_type=content_type,
        message="Care plan downloaded successfully.",
    )
    logger.info("[Artifact] 下载完成 %s (%d bytes)", result.filename, len(result.content))
    return result
