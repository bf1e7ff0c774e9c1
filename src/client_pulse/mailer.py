import asyncio
import logging
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Optional

import aiosmtplib

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 80


@dataclass
class MailSettings:
    host: Optional[str] = None
    port: int = 587
    use_tls: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    from_address: Optional[str] = None
    timeout: float = 30.0

    @property
    def has_credentials(self) -> bool:
        return bool(self.host and self.username and self.password)

    @property
    def sender(self) -> Optional[str]:
        return self.from_address or self.username

    @classmethod
    def from_config(cls, config) -> "MailSettings":
        return cls(
            host=config.get('SMTP_HOST'),
            port=int(config.get('SMTP_PORT') or 587),
            use_tls=bool(config.get('SMTP_SECURE')),
            username=config.get('SMTP_USER'),
            password=config.get('SMTP_PASS'),
            from_address=config.get('FROM_EMAIL'),
            timeout=float(config.get('SMTP_TIMEOUT') or 30.0),
        )


@dataclass
class SendResult:
    ok: bool
    simulated: bool = False
    message_id: Optional[str] = None
    error: Optional[str] = None


def preview(text: str, length: int = PREVIEW_LENGTH) -> str:
    if len(text) > length:
        return text[:length] + '...'
    return text


class MailDispatcher:
    def __init__(self, settings: MailSettings, activity):
        self.settings = settings
        self.activity = activity
        self.live = False

    @property
    def mode(self) -> str:
        return 'live' if self.live else 'simulated'

    def verify(self) -> bool:
        """Picks the operating mode for the lifetime of the process."""
        if not self.settings.has_credentials:
            self.live = False
            self.activity.append('System', "No SMTP configured; email sends will be simulated in logs")
            return False

        try:
            asyncio.run(self._verify_transport())
        except Exception as e:
            logger.warning(f"SMTP verification against {self.settings.host} failed: {e}")
            self.live = False
            self.activity.append('System', f"SMTP verification failed (emails will be simulated): {e}")
            return False

        self.live = True
        self.activity.append('System', "SMTP transport verified; real email enabled")
        return True

    def send(self, to_address: str, subject: str, body: str) -> SendResult:
        if not self.live:
            self.activity.append('Email', f'Simulated send to {to_address}: "{preview(body)}"')
            return SendResult(ok=True, simulated=True)

        try:
            message = self._build_message(to_address, subject, body)
            asyncio.run(self._deliver(message))
        except asyncio.TimeoutError:
            error = f"timed out after {self.settings.timeout:g}s"
            self.activity.append('Email', f"Failed to {to_address}: {error}")
            return SendResult(ok=False, error=error)
        except Exception as e:
            logger.error(f"SMTP delivery to {to_address} failed: {e}", exc_info=True)
            self.activity.append('Email', f"Failed to {to_address}: {e}")
            return SendResult(ok=False, error=str(e) or e.__class__.__name__)

        message_id = message['Message-ID']
        self.activity.append('Email', f"Sent to {to_address} (messageId {message_id})")
        return SendResult(ok=True, message_id=message_id)

    def _build_message(self, to_address, subject, body):
        msg = EmailMessage()
        msg['From'] = self.settings.sender
        msg['To'] = to_address
        msg['Subject'] = subject
        msg['Message-ID'] = make_msgid(domain=self.settings.host)
        msg.set_content(body)
        return msg

    def _transport_options(self):
        options = {
            'hostname': self.settings.host,
            'port': self.settings.port,
            'username': self.settings.username,
            'password': self.settings.password,
            'timeout': self.settings.timeout,
        }
        if self.settings.use_tls:
            options['use_tls'] = True
        return options

    async def _deliver(self, message):
        await asyncio.wait_for(
            aiosmtplib.send(message, **self._transport_options()),
            timeout=self.settings.timeout,
        )

    async def _verify_transport(self):
        smtp = aiosmtplib.SMTP(
            hostname=self.settings.host,
            port=self.settings.port,
            use_tls=self.settings.use_tls,
            timeout=self.settings.timeout,
        )
        await smtp.connect()
        try:
            await smtp.login(self.settings.username, self.settings.password)
        finally:
            await smtp.quit()
