"""
SubmissionOutcome — classifier 的唯一输出格式。

六种结果，互斥，每次提交恰好得到一种：

  Success               → 订单创建成功
  ConfirmationRequired  → 软冲突，需要人工确认（不是真正的错误，是流程分支）
  ValidationFailed      → 422 字段校验失败
  TransportFailed       → 没连上服务 / 返回格式不对
  RequestRejected       → 其他 4xx
  ServerFailed          → 5xx

type / code 与服务端统一错误体的 type / code 用法一致，方便日志里对照。
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Optional, Union


# ── ConfirmationIssues ─────────────────────────────────────────────────────
#
# 服务端 422 确认体里的 issues 对象：
# {
#   "patient":  { "existing_name": "...", "submitted_name": "...", "mrn": "123456" },
#   "provider": { "existing_name": "...", "submitted_name": "...", "npi": "1234567890" },
#   "order":    { "medication_name": "Humira", "existing_order_id": 42 }
# }
# 三项互相独立、都可缺省，每一项对应一个 override flag。

@dataclass(frozen=True)
class PatientConflict:
    existing_name: str
    submitted_name: str
    mrn: str


@dataclass(frozen=True)
class ProviderConflict:
    existing_name: str
    submitted_name: str
    npi: str


@dataclass(frozen=True)
class OrderConflict:
    medication_name: str
    existing_order_id: Any


def _text(obj: dict, key: str) -> str:
    value = obj.get(key)
    return "" if value is None else str(value)


@dataclass(frozen=True)
class ConfirmationIssues:
    """
    raw 保存服务端 issues 对象的原样副本（不参与判断，只用于回显 / 排查）。
    patient / provider / order 是解析后的结构，缺省为 None。
    """

    patient: Optional[PatientConflict] = None
    provider: Optional[ProviderConflict] = None
    order: Optional[OrderConflict] = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_body(cls, issues: Any) -> Optional["ConfirmationIssues"]:
        """
        解析 issues 对象。三项都不存在时返回 None，
        classifier 不会产出空的 ConfirmationRequired。
        """
        if not isinstance(issues, dict):
            return None

        patient = issues.get("patient")
        provider = issues.get("provider")
        order = issues.get("order")

        result = cls(
            patient=PatientConflict(
                existing_name=_text(patient, "existing_name"),
                submitted_name=_text(patient, "submitted_name"),
                mrn=_text(patient, "mrn"),
            ) if isinstance(patient, dict) else None,
            provider=ProviderConflict(
                existing_name=_text(provider, "existing_name"),
                submitted_name=_text(provider, "submitted_name"),
                npi=_text(provider, "npi"),
            ) if isinstance(provider, dict) else None,
            order=OrderConflict(
                medication_name=_text(order, "medication_name"),
                existing_order_id=order.get("existing_order_id"),
            ) if isinstance(order, dict) else None,
            raw=copy.deepcopy(issues),
        )
        return None if result.is_empty else result

    @property
    def is_empty(self) -> bool:
        return self.patient is None and self.provider is None and self.order is None

    def kinds(self) -> list[str]:
        """出现的冲突种类，顺序固定为 patient / provider / order。"""
        return [
            name for name in ("patient", "provider", "order")
            if getattr(self, name) is not None
        ]


# ── Outcome variants ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class Success:
    type = "success"
    code = "ORDER_CREATED"

    patient_id: int
    order_id: int
    message: str = ""

    ok = True

    def describe(self) -> str:
        return self.message or "Care plan input saved successfully."


@dataclass(frozen=True)
class ConfirmationRequired:
    type = "warning"
    code = "CONFIRMATION_REQUIRED"

    issues: ConfirmationIssues

    ok = False

    def describe(self) -> str:
        return "Confirmation required: " + ", ".join(self.issues.kinds())


@dataclass(frozen=True)
class ValidationFailed:
    type = "validation_error"
    code = "VALIDATION_ERROR"

    field_errors: tuple[tuple[str, str], ...]

    ok = False

    @property
    def message(self) -> str:
        return "; ".join(
            f"{path}: {msg}" if path else msg
            for path, msg in self.field_errors
        )

    def describe(self) -> str:
        return f"Validation error: {self.message}"


@dataclass(frozen=True)
class TransportFailed:
    type = "transport_error"
    code = "TRANSPORT_FAILED"

    cause: str
    detail: Optional[str] = None

    ok = False

    @property
    def message(self) -> str:
        return self.cause

    def describe(self) -> str:
        return self.cause


@dataclass(frozen=True)
class RequestRejected:
    type = "block"
    code = "REQUEST_REJECTED"

    message: str
    status_code: Optional[int] = None

    ok = False

    def describe(self) -> str:
        return self.message


@dataclass(frozen=True)
class ServerFailed:
    type = "server_error"
    code = "SERVER_FAILED"

    message: str
    status_code: Optional[int] = None

    ok = False

    def describe(self) -> str:
        return self.message


SubmissionOutcome = Union[
    Success,
    ConfirmationRequired,
    ValidationFailed,
    TransportFailed,
    RequestRejected,
    ServerFailed,
]
