"""Twilio-compatible SMS and messaging-app channels.

Both post to ``{api_url}/Accounts/{sid}/Messages.json`` with basic auth.
The messaging-app variant prefixes both addresses with ``whatsapp:``.
"""

import httpx
import structlog

from notifications.channel.port import Channel, ChannelName, failed, sent

logger = structlog.get_logger(__name__)


class TwilioChannel(Channel):
    address_prefix = ""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        api_url: str = "https://api.twilio.com/2010-04-01",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.account_sid = account_sid
        self.from_number = from_number
        self.client = httpx.Client(
            base_url=api_url.rstrip("/"),
            auth=(account_sid, auth_token),
            transport=transport,
        )

    def _address(self, number: str) -> str:
        if self.address_prefix and not number.startswith(self.address_prefix):
            return f"{self.address_prefix}{number}"
        return number

    def send(self, recipient: str, message: dict) -> dict:
        data = {
            "To": self._address(recipient),
            "From": self._address(self.from_number),
            "Body": message["body"],
        }
        try:
            response = self.client.post(f"/Accounts/{self.account_sid}/Messages.json", data=data)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Message rejected by provider",
                channel=self.name,
                status_code=exc.response.status_code,
                body=exc.response.text[:500],
            )
            return failed(f"Provider returned {exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.warning("Message delivery failed", channel=self.name, error=str(exc))
            return failed(str(exc))

        return sent(response.json().get("sid"))

    def close(self) -> None:
        self.client.close()


class SMSChannel(TwilioChannel):
    name = ChannelName.SMS.value


class MessagingAppChannel(TwilioChannel):
    name = ChannelName.MESSAGING_APP.value
    address_prefix = "whatsapp:"
