import asyncio


class CancellationToken:
    """协作式取消令牌，在逐项处理的边界处检查"""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str = ""

    def cancel(self, reason: str = "cancelled") -> None:
        """请求取消，已经开始的条目会执行完成"""
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        await self._event.wait()
