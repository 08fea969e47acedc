"""
Submission orchestrator — 提交 / 确认 / 重新提交的状态机。

状态流转：

  Idle ──submit()──▶ Submitting ──Success──────────────▶ GeneratingArtifact ──▶ Terminal ──▶ Idle
                        │  ▲      ──其他失败────────────▶ Terminal ──▶ Idle
                        │  │
          ConfirmationRequired  confirm()
                        ▼  │
                  AwaitingConfirmation ──cancel()──▶ Idle

- 状态是一个显式的值（下面的 dataclass），payload / issues / 订单 ID 作为转移数据携带，
  没有任何全局或 session 级别的可变存储。
- 每个实例同一时刻最多一个提交在途，非 Idle 时 submit() 直接拒绝。
- 两个 await 点（提交、下载）都用 asyncio.wait_for 兜底，超时按 TransportFailed 处理。
- listener 抛出的异常只记日志，不影响状态流转和 submit() / confirm() 的返回值。
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from . import settings
from .artifacts import ArtifactResult, fetch_care_plan
from .classifier import classify
from .exceptions import NoPendingConfirmationError, SubmissionInProgressError
from .outcomes import ConfirmationIssues, ConfirmationRequired, SubmissionOutcome, Success
from .payload import SubmissionPayload, to_wire
from .presentation import Notice, build_artifact_notice, build_notice
from .transport import TransportFailure

logger = logging.getLogger(__name__)


# ── States ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Idle:
    name = "idle"


@dataclass(frozen=True)
class Submitting:
    name = "submitting"

    payload: SubmissionPayload


@dataclass(frozen=True)
class AwaitingConfirmation:
    name = "awaiting_confirmation"

    payload: SubmissionPayload
    issues: ConfirmationIssues


@dataclass(frozen=True)
class GeneratingArtifact:
    """
    订单已成功：outcome / notice 在进入这个状态时就对外可见，
    不用等 care plan 下载结束。
    """

    name = "generating_artifact"

    outcome: Success
    notice: Notice

    @property
    def patient_id(self) -> Any:
        return self.outcome.patient_id

    @property
    def order_id(self) -> Any:
        return self.outcome.order_id


@dataclass(frozen=True)
class Terminal:
    name = "terminal"

    outcome: SubmissionOutcome


IDLE = Idle()


@dataclass(frozen=True)
class SubmissionReport:
    """
    一次 submit() / confirm() 的完整结果。

    outcome 是订单本身的结果；artifact 只在 outcome 为 Success 且开启下载时才有值，
    下载失败不影响 outcome。
    """

    outcome: SubmissionOutcome
    notice: Notice
    payload: SubmissionPayload
    artifact: Optional[ArtifactResult] = None
    artifact_notice: Optional[Notice] = None

    @property
    def requires_confirmation(self) -> bool:
        return isinstance(self.outcome, ConfirmationRequired)


class SubmissionOrchestrator:

    def __init__(self, transport, fetch_artifact: Optional[bool] = None, deadline: Optional[float] = None):
        self._transport = transport
        self._fetch_artifact = settings.FETCH_ARTIFACT if fetch_artifact is None else fetch_artifact
        self._deadline = deadline or settings.DEADLINE
        self._state = IDLE
        self._draft: Optional[SubmissionPayload] = None
        self._listeners: list[Callable] = []
        self.history: list = [IDLE]

    @property
    def state(self):
        return self._state

    @property
    def draft(self) -> Optional[SubmissionPayload]:
        """表单数据。确认 / 取消 / 失败后都保留，只有成功回到 Idle 时清空。"""
        return self._draft

    def add_listener(self, callback: Callable) -> None:
        self._listeners.append(callback)

    def _transition(self, new_state) -> None:
        logger.info("[Orchestrator] %s → %s", self._state.name, new_state.name)
        self._state = new_state
        self.history.append(new_state)
        for callback in self._listeners:
            try:
                callback(new_state)
            except Exception:
                # listener 出错不能打断状态流转
                logger.exception("[Orchestrator] listener %r 处理 %s 失败", callback, new_state.name)

    # ── Events ─────────────────────────────────────────────────────────────

    async def submit(self, payload: SubmissionPayload) -> SubmissionReport:
        if not isinstance(self._state, Idle):
            raise SubmissionInProgressError(
                message="A submission is already in progress.",
                detail={"state": self._state.name},
            )
        self._draft = payload
        return await self._send(payload.fresh())

    async def confirm(self) -> SubmissionReport:
        state = self._state
        if not isinstance(state, AwaitingConfirmation):
            raise NoPendingConfirmationError(
                message="There is no pending confirmation.",
                detail={"state": state.name},
            )
        resubmission = state.payload.with_overrides(state.issues)
        logger.info("[Orchestrator] 用户已确认 %s，重新提交 overrides=%s", state.issues.kinds(), resubmission.overrides)
        return await self._send(resubmission)

    def cancel(self) -> None:
        state = self._state
        if not isinstance(state, AwaitingConfirmation):
            raise NoPendingConfirmationError(
                message="There is no pending confirmation.",
                detail={"state": state.name},
            )
        logger.info("[Orchestrator] 用户取消确认 %s", state.issues.kinds())
        self._transition(IDLE)

    # ── Internals ──────────────────────────────────────────────────────────

    async def _deliver(self, payload: SubmissionPayload) -> SubmissionOutcome:
        try:
            delivery = await asyncio.wait_for(
                self._transport.create_order(to_wire(payload)),
                timeout=self._deadline,
            )
        except asyncio.TimeoutError:
            logger.warning("[Orchestrator] 提交超过 %.1fs 未返回", self._deadline)
            delivery = TransportFailure(cause="request timed out", timed_out=True)
        return classify(delivery)

    async def _send(self, payload: SubmissionPayload) -> SubmissionReport:
        self._transition(Submitting(payload=payload))

        try:
            outcome = await self._deliver(payload)
        except Exception:
            # transport 实现本身出错：状态回到 Idle 再冒泡，不让状态机卡在 Submitting
            self._transition(IDLE)
            raise

        notice = build_notice(outcome)
        logger.info("[Orchestrator] mrn=%s 提交结果 type=%s", payload.mrn, outcome.type)

        if isinstance(outcome, ConfirmationRequired):
            self._transition(AwaitingConfirmation(payload=payload, issues=outcome.issues))
            return SubmissionReport(outcome=outcome, notice=notice, payload=payload)

        if not isinstance(outcome, Success):
            self._transition(Terminal(outcome=outcome))
            self._transition(IDLE)
            return SubmissionReport(outcome=outcome, notice=notice, payload=payload)

        artifact = None
        artifact_notice = None
        if self._fetch_artifact:
            self._transition(GeneratingArtifact(outcome=outcome, notice=notice))
            artifact = await fetch_care_plan(
                self._transport, outcome.patient_id, outcome.order_id, deadline=self._deadline,
            )
            artifact_notice = build_artifact_notice(artifact)

        self._transition(Terminal(outcome=outcome))
        self._draft = None
        self._transition(IDLE)

        return SubmissionReport(
            outcome=outcome,
            notice=notice,
            payload=payload,
            artifact=artifact,
            artifact_notice=artifact_notice,
        )
