import asyncio
from dataclasses import dataclass
from typing import Optional, Protocol, Set
import httpx
from intranet.common.logging_setup import get_logger
from intranet.config.admin_config import admin_config
from intranet.config.settings import config_settings

logger = get_logger("arl.sms")


@dataclass(frozen=True)
class SmsResult:
    success: bool
    error_detail: Optional[str] = None
    message_id: Optional[str] = None


class SmsSender(Protocol):
    async def send(self, phone: str, message: str) -> SmsResult: ...


class ConsoleSmsSender:
    """Used when no provider key is configured: the message only goes to the dev log."""

    async def send(self, phone: str, message: str) -> SmsResult:
        if admin_config.ENV == "dev":
            logger.info("sms.console %s", message, extra={"phone": phone})
        else:
            logger.warning("sms.not_configured", extra={"phone": phone})
        return SmsResult(success=True, message_id="console")


class SmsOnlineGhSender:
    """smsonlinegh.com v4 send API."""

    def __init__(self, api_key: str, sender_id: str = config_settings.SMS_SENDER_ID,
                 base_url: str = config_settings.SMS_BASE_URL,
                 timeout: float = config_settings.SMS_TIMEOUT_SECONDS,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = api_key
        self.sender_id = sender_id
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    async def send(self, phone: str, message: str) -> SmsResult:
        payload = {
            "messages": [
                {
                    "text": message,
                    "type": 0,  # plain text
                    "sender": self.sender_id,
                    "destinations": [phone],
                }
            ]
        }
        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "authorization": f"key {self.api_key}",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(self.base_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            return SmsResult(success=False, error_detail=f"{type(exc).__name__}: {exc}")

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if resp.status_code // 100 == 2 and data.get("status") == 200:
            return SmsResult(success=True, message_id=data.get("messageId"))
        return SmsResult(success=False, error_detail=data.get("message") or f"status={resp.status_code} body={resp.text[:200]}")


def build_sms_sender() -> SmsSender:
    if config_settings.SMS_API_KEY:
        return SmsOnlineGhSender(api_key=config_settings.SMS_API_KEY)
    return ConsoleSmsSender()


class SmsDispatcher:
    """
    Fire-and-forget delivery. dispatch() returns as soon as the send task is
    scheduled; outcomes are only logged. drain() waits for in-flight sends
    (app shutdown, tests).
    """

    def __init__(self, sender: SmsSender, timeout: float = config_settings.SMS_TIMEOUT_SECONDS):
        self.sender = sender
        self.timeout = timeout
        self._pending: Set[asyncio.Task] = set()

    def dispatch(self, phone: str, message: str, *, event: str = "sms") -> asyncio.Task:
        task = asyncio.create_task(self._deliver(phone, message, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _deliver(self, phone: str, message: str, event: str) -> SmsResult:
        try:
            result = await asyncio.wait_for(self.sender.send(phone, message), timeout=self.timeout)
        except asyncio.TimeoutError:
            result = SmsResult(success=False, error_detail=f"timed out after {self.timeout}s")
        except Exception as exc:
            result = SmsResult(success=False, error_detail=f"{type(exc).__name__}: {exc}")

        if result.success:
            logger.info(f"{event}.delivery.sent", extra={"phone": phone, "message_id": result.message_id})
        else:
            logger.warning(f"{event}.delivery.failed", extra={"phone": phone, "error": result.error_detail})
        return result

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self):
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
