"""
客户端异常体系。

提交结果（成功 / 需确认 / 校验失败 / 网络失败 ...）都是 outcomes.py 里的值，
不是异常。这里只放「调用方用错了」或「组件内部需要冒泡」的情况：

- type:    错误类型标识（state / artifact）
- code:    错误码（SUBMISSION_IN_PROGRESS / NO_PENDING_CONFIRMATION / ...）
- message: 人类可读的描述
- detail:  可选的附加信息（dict / None）
"""


class BaseAppException(Exception):
    """所有客户端异常的基类。"""

    type = 'error'
    code = 'UNKNOWN_ERROR'

    def __init__(self, message, code=None, detail=None):
        self.message = message
        if code is not None:
            self.code = code
        self.detail = detail
        super().__init__(message)


class StateError(BaseAppException):
    """当前状态不接受该事件。Orchestrator 抛出。"""

    type = 'state'
    code = 'INVALID_TRANSITION'


class SubmissionInProgressError(StateError):
    """
    已有一个提交在途（或正等待确认），拒绝第二次 submit()。

    远端不允许被重复提交，所以这里直接拒绝，不排队。
    """

    code = 'SUBMISSION_IN_PROGRESS'


class NoPendingConfirmationError(StateError):
    """没有待确认的冲突时调用了 confirm() / cancel()。"""

    code = 'NO_PENDING_CONFIRMATION'


class ArtifactError(BaseAppException):
    """Care plan 文件相关的错误（例如保存一个失败的下载结果）。"""

    type = 'artifact'
    code = 'ARTIFACT_UNAVAILABLE'
