import re
from datetime import datetime, timedelta
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError
from intranet.notifications.sms import SmsResult

url_prefix = "/api/v1"

ADMIN_PHONE = "233241234567"
SUPERADMIN_PHONE = "233501112222"


class MutableClock:
    """Injected wherever the code asks for "now"."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def set(self, value: datetime):
        self.current = value

    def advance(self, seconds: float):
        self.current = self.current + timedelta(seconds=seconds)


class RecordingSender:
    def __init__(self):
        self.sent = []
        self.fail = False

    async def send(self, phone: str, message: str) -> SmsResult:
        self.sent.append((phone, message))
        if self.fail:
            return SmsResult(success=False, error_detail="provider rejected")
        return SmsResult(success=True, message_id=f"msg-{len(self.sent)}")

    def last_code(self, phone: str) -> str:
        for to, message in reversed(self.sent):
            if to == phone:
                return re.search(r"\b(\d{6})\b", message).group(1)
        raise AssertionError(f"no sms sent to {phone}")


async def login(ac: AsyncClient, app, sender: RecordingSender, phone: str) -> AsyncClient:
    """Full otp round trip; leaves the session cookie in the client's jar."""
    resp = await ac.post(f"{url_prefix}/auth/otp/request", json={"phone": phone})
    assert resp.status_code == 200, resp.text
    await app.state.sms_dispatcher.drain()
    resp = await ac.post(f"{url_prefix}/auth/otp/verify", json={"phone": phone, "code": sender.last_code(phone)})
    assert resp.status_code == 200, resp.text
    return ac


class DownRedis:
    """Every call fails the way an unreachable server does."""

    async def evalsha(self, *args, **kwargs):
        raise RedisConnectionError("connection refused")

    async def eval(self, *args, **kwargs):
        raise RedisConnectionError("connection refused")

    async def get(self, *args, **kwargs):
        raise RedisConnectionError("connection refused")
