"""
提示文案选择（toast 标题 / 描述 / 显示时长）。

只看 outcome.describe() 的文字做轻量匹配，纯展示用途，
永远不会改变 classifier 给出的分类。
"""

from dataclasses import dataclass

from .outcomes import ConfirmationIssues, ConfirmationRequired, Success


@dataclass(frozen=True)
class Notice:
    title: str
    description: str
    duration_ms: int = 5000
    level: str = "error"      # success / warning / error


def describe_issues(issues: ConfirmationIssues) -> list[str]:
    """确认弹窗里每个冲突一行。"""
    lines = []
    if issues.patient is not None:
        lines.append(
            f"MRN {issues.patient.mrn} is already registered to '{issues.patient.existing_name}', "
            f"but this submission uses '{issues.patient.submitted_name}'."
        )
    if issues.provider is not None:
        lines.append(
            f"NPI {issues.provider.npi} is already registered to '{issues.provider.existing_name}', "
            f"but this submission uses '{issues.provider.submitted_name}'."
        )
    if issues.order is not None:
        lines.append(
            f"An order for '{issues.order.medication_name}' already exists "
            f"(order #{issues.order.existing_order_id})."
        )
    return lines


def build_notice(outcome) -> Notice:
    if isinstance(outcome, Success):
        return Notice(
            title="Care plan input saved successfully.",
            description=f"Patient ID: {outcome.patient_id}, Order ID: {outcome.order_id}",
            level="success",
        )

    if isinstance(outcome, ConfirmationRequired):
        return Notice(
            title="Confirmation Required",
            description=" ".join(describe_issues(outcome.issues)),
            duration_ms=6000,
            level="warning",
        )

    message = outcome.describe()
    normalized = message.lower()

    if "duplicate" in normalized or "already exists" in normalized or "mrn" in normalized:
        description = message if "MRN" in message else f"A record with this information already exists. {message}"
        return Notice(title="Duplicate Entry Detected", description=description, duration_ms=6000)

    if "network error" in normalized or "endpoint not found" in normalized:
        return Notice(title="Connection Error", description=message, duration_ms=6000)

    if "validation error" in normalized:
        return Notice(title="Validation Error", description=message, duration_ms=6000)

    return Notice(title="Submission Failed", description=message, duration_ms=5000)


def build_artifact_notice(result) -> Notice:
    if result.ok:
        return Notice(title="Care plan downloaded", description=result.filename, level="success")
    return Notice(title="Care plan download failed", description=result.message, duration_ms=6000)
