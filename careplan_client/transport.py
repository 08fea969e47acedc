"""
HTTP 传输层 — 远端 intake 服务的唯一出入口。

只负责「把请求发出去、把响应完整读回来」，不做任何判断：
  - 收到响应（不管状态码）→ 返回已读完 body 的 httpx.Response
  - 没拿到可用的响应（连接拒绝 / DNS / 超时 / 协议错误 / body 解码失败 / URL 无效）→ 返回 TransportFailure

两种情况都不抛异常，交给 classifier / artifacts 统一分类。
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx

from . import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportFailure:
    """请求没有拿到任何响应。cause 是底层异常的描述。"""

    cause: str
    timed_out: bool = False

    @classmethod
    def from_exception(cls, exc: BaseException) -> "TransportFailure":
        return cls(
            cause=str(exc) or exc.__class__.__name__,
            timed_out=isinstance(exc, httpx.TimeoutException),
        )


Delivery = Union[httpx.Response, TransportFailure]


class IntakeTransport:
    """
    httpx.AsyncClient 的薄封装。

    传入 client 时由调用方管理其生命周期（测试里传 MockTransport 的 client）；
    否则这里自己建一个，并在 aclose() 时关闭。
    """

    def __init__(
        self,
        base_url: str = settings.API_BASE_URL,
        timeout: Optional[httpx.Timeout] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout or settings.build_timeout())

    async def create_order(self, body: dict[str, Any]) -> Delivery:
        """POST /patients"""
        return await self._send("POST", f"{self.base_url}/patients", json=body)

    async def fetch_care_plan(self, patient_id: Any, order_id: Any) -> Delivery:
        """GET /patients/{patient_id}/orders/{order_id}/care-plan"""
        url = f"{self.base_url}/patients/{patient_id}/orders/{order_id}/care-plan"
        return await self._send("GET", url)

    async def _send(self, method: str, url: str, **kwargs) -> Delivery:
        logger.info("[Transport] %s %s", method, url)
        try:
            response = await self._client.request(method, url, **kwargs)
            # 非 stream 请求 body 已读完；这里显式 aread 保证连接释放
            await response.aread()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            # 连接 / 超时 / body 解码 / 重定向 / URL 失败：都没拿到可用的响应
            logger.warning("[Transport] %s %s 未收到响应: %r", method, url, exc)
            return TransportFailure.from_exception(exc)

        logger.info(
            "[Transport] %s %s → %d (%s)",
            method, url, response.status_code, response.headers.get("content-type", "-"),
        )
        return response

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "IntakeTransport":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
