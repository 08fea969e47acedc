"""
SubmissionPayload dataclass — 提交给 POST /patients 的订单数据。

表单层（不在本包内）负责字段校验并构造这个对象；
Orchestrator 在一次 submit → confirm → resubmit 周期内持有它。

三个 override flag 只在确认后的重新提交里有意义：
首次提交一律用 fresh()，确认后用 with_overrides(issues)。
"""

from dataclasses import dataclass, field, replace
from typing import Any

# 本地字段名 → 服务端字段名（只有 override flag 不一致）
_FLAG_WIRE_NAMES = {
    "confirm_patient_mismatch":  "confirm_patient_name_mismatch",
    "confirm_provider_mismatch": "confirm_provider_name_mismatch",
    "confirm_duplicate_order":   "confirm_duplicate_order",
}


@dataclass(frozen=True)
class SubmissionPayload:
    first_name: str
    last_name: str
    mrn: str                                  # 6 位数字
    referring_provider: str
    provider_npi: str                         # 10 位数字
    primary_diagnosis: str                    # ICD-10
    medication_name: str
    records_text: str = ""
    additional_diagnoses: list[str] = field(default_factory=list)
    medication_history: list[str] = field(default_factory=list)
    confirm_patient_mismatch: bool = False
    confirm_provider_mismatch: bool = False
    confirm_duplicate_order: bool = False

    @property
    def overrides(self) -> tuple[bool, bool, bool]:
        return (
            self.confirm_patient_mismatch,
            self.confirm_provider_mismatch,
            self.confirm_duplicate_order,
        )

    def fresh(self) -> "SubmissionPayload":
        """首次提交用的副本：三个 flag 全部为 False。"""
        return replace(
            self,
            confirm_patient_mismatch=False,
            confirm_provider_mismatch=False,
            confirm_duplicate_order=False,
        )

    def with_overrides(self, issues) -> "SubmissionPayload":
        """
        用户确认后的重新提交副本。

        哪个冲突出现就打开哪个 flag，其余字段原样保留，用户不用重新填写。
        已经打开的 flag 保持打开（重新提交又报出新冲突时不会丢掉上一轮的确认）。
        """
        return replace(
            self,
            confirm_patient_mismatch=self.confirm_patient_mismatch or issues.patient is not None,
            confirm_provider_mismatch=self.confirm_provider_mismatch or issues.provider is not None,
            confirm_duplicate_order=self.confirm_duplicate_order or issues.order is not None,
        )


def to_wire(payload: SubmissionPayload) -> dict[str, Any]:
    """
    SubmissionPayload → JSON body。

    可选列表为空时直接省略，不发送 []；flag 只在为 True 时发送（服务端默认 False）。
    """
    body: dict[str, Any] = {
        "first_name": payload.first_name,
        "last_name": payload.last_name,
        "referring_provider": payload.referring_provider,
        "provider_npi": payload.provider_npi,
        "mrn": payload.mrn,
        "primary_diagnosis": payload.primary_diagnosis,
        "medication_name": payload.medication_name,
        "records_text": payload.records_text,
    }

    additional = [c for c in payload.additional_diagnoses if (c or "").strip()]
    if additional:
        body["additional_diagnoses"] = additional

    history = [m for m in payload.medication_history if (m or "").strip()]
    if history:
        body["medication_history"] = history

    for attr, wire_name in _FLAG_WIRE_NAMES.items():
        if getattr(payload, attr):
            body[wire_name] = True

    return body
