"""
careplan_client — care plan 订单提交客户端。

  classify()                 响应 → SubmissionOutcome
  SubmissionOrchestrator     submit / confirm / cancel 状态机
  IntakeTransport            httpx 传输层
"""

from .artifacts import ArtifactResult, fetch_care_plan
from .classifier import classify
from .exceptions import (
    ArtifactError,
    BaseAppException,
    NoPendingConfirmationError,
    StateError,
    SubmissionInProgressError,
)
from .orchestrator import SubmissionOrchestrator, SubmissionReport
from .outcomes import (
    ConfirmationIssues,
    ConfirmationRequired,
    RequestRejected,
    ServerFailed,
    Success,
    TransportFailed,
    ValidationFailed,
)
from .payload import SubmissionPayload, to_wire
from .presentation import Notice, build_notice
from .transport import IntakeTransport, TransportFailure

__all__ = [
    "ArtifactError",
    "ArtifactResult",
    "BaseAppException",
    "ConfirmationIssues",
    "ConfirmationRequired",
    "IntakeTransport",
    "NoPendingConfirmationError",
    "Notice",
    "RequestRejected",
    "ServerFailed",
    "StateError",
    "SubmissionInProgressError",
    "SubmissionOrchestrator",
    "SubmissionPayload",
    "SubmissionReport",
    "Success",
    "TransportFailed",
    "TransportFailure",
    "ValidationFailed",
    "build_notice",
    "classify",
    "fetch_care_plan",
    "to_wire",
]
