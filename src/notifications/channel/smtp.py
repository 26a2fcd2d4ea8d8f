"""SMTP email channel over aiosmtplib.

The dispatcher calls channels from its worker threads, so ``send`` drives
one short-lived connection to completion on a fresh event loop per message.
"""

import asyncio
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate, make_msgid

import aiosmtplib
import structlog

from notifications.channel.port import Channel, ChannelName, failed, sent

logger = structlog.get_logger(__name__)


class EmailChannel(Channel):
    name = ChannelName.EMAIL.value

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        password: str,
        from_email: str | None = None,
        from_name: str = "Support",
        use_tls: bool = True,
        timeout: float = 30.0,
        smtp_factory=aiosmtplib.SMTP,
    ) -> None:
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email or username
        self.from_name = from_name
        self.use_tls = use_tls
        self.timeout = timeout
        self.smtp_factory = smtp_factory

    def build_message(self, recipient: str, message: dict) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.get("subject", "")
        msg["From"] = formataddr((self.from_name, self.from_email))
        msg["To"] = recipient
        msg["Date"] = formatdate(localtime=True)
        msg["Message-ID"] = make_msgid()

        msg.attach(MIMEText(message["body"], "plain", "utf-8"))
        if message.get("html_body"):
            msg.attach(MIMEText(message["html_body"], "html", "utf-8"))
        return msg

    async def deliver(self, msg: MIMEMultipart) -> None:
        smtp = self.smtp_factory(
            hostname=self.host,
            port=self.port,
            start_tls=self.use_tls,
            timeout=self.timeout,
        )
        await smtp.connect()
        try:
            await smtp.login(self.username, self.password)
            await smtp.send_message(msg)
        finally:
            await smtp.quit()

    def send(self, recipient: str, message: dict) -> dict:
        msg = self.build_message(recipient, message)
        try:
            asyncio.run(self.deliver(msg))
        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as exc:
            logger.warning("Email delivery failed", recipient=recipient, error=str(exc))
            return failed(str(exc))

        logger.debug("Email sent", recipient=recipient, message_id=msg["Message-ID"])
        return sent(msg["Message-ID"])
