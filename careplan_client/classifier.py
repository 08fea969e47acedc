"""
Response classifier — 把一次 POST /patients 的传输结果归成一种 SubmissionOutcome。

纯函数，无状态，不修改任何共享数据，可并发调用。

判断优先级（从上到下，命中即返回）：
1. 没收到响应                         → TransportFailed
2. 收到响应但不是 JSON                 → 404 TransportFailed / 5xx ServerFailed / 其他 RequestRejected
3. JSON 解析失败                       → TransportFailed
4. 2xx                                 → Success
5. 422 + 确认标记 + 非空 issues        → ConfirmationRequired
6. 422 + detail 是校验数组             → ValidationFailed
7. 400                                 → RequestRejected
8. 其他非 2xx                          → RequestRejected（5xx 为 ServerFailed）

422 同时可能是「数据格式错」和「数据合理但与现有记录冲突」，
确认体的 marker + issues 是唯一区分依据，所以 5 必须在 6 之前。
"""

import logging
from typing import Any, Callable, Optional

import httpx

from .outcomes import (
    ConfirmationIssues,
    ConfirmationRequired,
    RequestRejected,
    ServerFailed,
    SubmissionOutcome,
    Success,
    TransportFailed,
    ValidationFailed,
)
from .transport import Delivery, TransportFailure

logger = logging.getLogger(__name__)

NETWORK_ERROR_MESSAGE = (
    "Network error: Unable to reach the server. "
    "Please check your connection and ensure the API is running."
)
ENDPOINT_NOT_FOUND_MESSAGE = (
    "API endpoint not found. Please verify the API URL is correct and the server is running."
)
SERVER_ERROR_MESSAGE = "Server error. Please try again later or contact support."
INVALID_FORMAT_MESSAGE = "Invalid response format from server"
BAD_REQUEST_MESSAGE = "Bad request. Please check your input."


def is_json_content_type(content_type: str) -> bool:
    media_type = (content_type or "").split(";")[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


# ── 确认体提取策略 ─────────────────────────────────────────────────────────
#
# 按顺序尝试，第一个得到非空 issues 的生效（issues 为空则继续下一个）：
#   1. 顶层   { "requires_confirmation": true, "issues": {...} }
#   2. 旧格式 { "detail": { "requires_confirmation": true, "issues": {...} } }

def _confirmation_shape(obj: Any) -> Optional[Any]:
    if isinstance(obj, dict) and obj.get("requires_confirmation") is True and "issues" in obj:
        return obj["issues"]
    return None


def _top_level_issues(body: dict) -> Optional[Any]:
    return _confirmation_shape(body)


def _nested_detail_issues(body: dict) -> Optional[Any]:
    return _confirmation_shape(body.get("detail"))


CONFIRMATION_EXTRACTORS: tuple[Callable[[dict], Optional[Any]], ...] = (
    _top_level_issues,
    _nested_detail_issues,
)


def extract_confirmation(body: dict) -> Optional[ConfirmationIssues]:
    """
    依次跑 CONFIRMATION_EXTRACTORS。

    某个策略找到确认标记但 issues 三项都没有时，继续尝试下一个策略；
    所有策略都没有得到非空 issues 才返回 None，交给后面的规则处理（最终落到 RequestRejected）。
    """
    for extractor in CONFIRMATION_EXTRACTORS:
        raw_issues = extractor(body)
        if raw_issues is None:
            continue
        issues = ConfirmationIssues.from_body(raw_issues)
        if issues is None:
            logger.warning(
                "[Classifier] 确认体 issues 为空（%s），尝试下一个提取策略",
                extractor.__name__,
            )
            continue
        return issues
    return None


# ── 校验错误 ───────────────────────────────────────────────────────────────
#
# { "detail": [ { "type": "missing", "loc": ["body", "mrn"], "msg": "Field required" } ] }
# → ("mrn", "Field required")

def _is_validation_array(detail: Any) -> bool:
    return isinstance(detail, list) and bool(detail) and all(isinstance(entry, dict) for entry in detail)


def flatten_validation_errors(detail: list) -> tuple[tuple[str, str], ...]:
    """loc 去掉第一段（"body"），剩下的用 "." 连接。"""
    errors = []
    for entry in detail:
        loc = entry.get("loc") or []
        if not isinstance(loc, (list, tuple)):
            loc = [loc]
        field_path = ".".join(str(part) for part in list(loc)[1:])
        errors.append((field_path, str(entry.get("msg") or "")))
    return tuple(errors)


# ── 错误消息提取 ───────────────────────────────────────────────────────────

def _error_message(body: dict, fallback: str) -> str:
    detail = body.get("detail")
    if isinstance(detail, str) and detail:
        return detail
    message = body.get("message")
    if isinstance(message, str) and message:
        return message
    return fallback


# ── 入口 ───────────────────────────────────────────────────────────────────

def classify(delivery: Delivery) -> SubmissionOutcome:
    # 1. 没收到响应
    if isinstance(delivery, TransportFailure):
        return TransportFailed(cause=NETWORK_ERROR_MESSAGE, detail=delivery.cause)

    response: httpx.Response = delivery
    status = response.status_code
    content_type = response.headers.get("content-type", "")

    # 2. 非 JSON（通常是网关的 HTML 错误页），body 已由 transport 读完
    if not is_json_content_type(content_type):
        detail = f"Received {content_type or 'unknown content type'} instead of JSON"
        logger.warning("[Classifier] status=%d 非 JSON 响应: %s", status, detail)
        if status == 404:
            return TransportFailed(cause=ENDPOINT_NOT_FOUND_MESSAGE, detail=detail)
        if status >= 500:
            return ServerFailed(message=SERVER_ERROR_MESSAGE, status_code=status)
        return RequestRejected(
            message=f"Server error ({status}): {response.reason_phrase}",
            status_code=status,
        )

    # 3. JSON 解析
    try:
        body = response.json()
    except ValueError:
        logger.warning("[Classifier] status=%d JSON 解析失败", status)
        return TransportFailed(
            cause=INVALID_FORMAT_MESSAGE,
            detail="The server returned an unexpected format.",
        )

    # 4. 成功
    if response.is_success:
        if not isinstance(body, dict) or body.get("patient_id") is None or body.get("order_id") is None:
            logger.warning("[Classifier] status=%d 成功响应缺少 patient_id / order_id", status)
            return TransportFailed(
                cause=INVALID_FORMAT_MESSAGE,
                detail="Success response is missing patient_id or order_id.",
            )
        return Success(
            patient_id=body["patient_id"],
            order_id=body["order_id"],
            message=body.get("message") or "",
        )

    if not isinstance(body, dict):
        body = {}

    if status == 422:
        # 5. 确认体优先
        issues = extract_confirmation(body)
        if issues is not None:
            return ConfirmationRequired(issues=issues)

        # 6. 字段校验数组
        detail = body.get("detail")
        if _is_validation_array(detail):
            return ValidationFailed(field_errors=flatten_validation_errors(detail))

    # 7. 400
    if status == 400:
        return RequestRejected(message=_error_message(body, BAD_REQUEST_MESSAGE), status_code=status)

    # 8. 其他非 2xx
    message = _error_message(body, f"Request failed with status {status}")
    if status >= 500:
        return ServerFailed(message=message, status_code=status)
    return RequestRejected(message=message, status_code=status)
