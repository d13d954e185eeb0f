import html
import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional

from pqrs_api.core.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Respuesta a su PQRS"


@dataclass
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


@dataclass
class OutgoingResponse:
    """One email answer to a PQRS."""

    to_email: str
    pqrs_id: str
    content: str
    responder_email: str
    subject: str = DEFAULT_SUBJECT
    cc_emails: Optional[str] = None
    bcc_emails: Optional[str] = None
    attachment: Optional[Attachment] = None


class MailSender(ABC):

    @abstractmethod
    def send(self, message: EmailMessage) -> str:
        """Deliver the message and return its Message-ID."""
        ...


class SmtpMailSender(MailSender):
    """
    SMTP delivery
    - smtp_secure=True  -> implicit TLS (port 465)
    - smtp_secure=False -> STARTTLS when the server offers it (port 587)
    """

    def __init__(self, settings: Settings, timeout: int = 20):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.secure = settings.smtp_secure
        self.user = settings.smtp_user
        self.password = settings.smtp_pass
        self.timeout = timeout

    def send(self, message: EmailMessage) -> str:
        if not self.host:
            raise RuntimeError("SMTP_HOST not configured")

        if self.secure:
            server = smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)

        with server:
            if not self.secure:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls()
                    server.ehlo()
            if self.user:
                server.login(self.user, self.password or "")
            server.send_message(message)

        logger.info(
            "email sent",
            extra={"props": {"to": message["To"], "message_id": message["Message-ID"]}},
        )
        return message["Message-ID"]


def build_response_email(response: OutgoingResponse, settings: Settings) -> EmailMessage:
    msg = EmailMessage()
    msg["Subject"] = response.subject or DEFAULT_SUBJECT
    sender = settings.smtp_from or settings.smtp_user
    if sender:
        msg["From"] = formataddr((settings.smtp_from_name, sender))
    msg["To"] = response.to_email
    if settings.smtp_reply_to:
        msg["Reply-To"] = settings.smtp_reply_to
    if response.cc_emails:
        msg["Cc"] = response.cc_emails
    if response.bcc_emails:
        # send_message() delivers to Bcc and strips the header
        msg["Bcc"] = response.bcc_emails
    msg["Message-ID"] = make_msgid(domain=_domain_of(settings.smtp_from))

    msg.set_content(response.content)
    msg.add_alternative(_render_html(response), subtype="html")

    if response.attachment is not None:
        maintype, _, subtype = response.attachment.content_type.partition("/")
        msg.add_attachment(
            response.attachment.content,
            maintype=maintype or "application",
            subtype=subtype or "octet-stream",
            filename=response.attachment.filename,
        )
    return msg


def _render_html(response: OutgoingResponse) -> str:
    body = html.escape(response.content).replace("\n", "<br>")
    responder = html.escape(response.responder_email)
    return (
        '<div style="font-family: Arial, sans-serif; line-height: 1.6;">'
        "<h3>Respuesta a su PQRS</h3>"
        f"<p>{body}</p>"
        "<hr>"
        '<p style="color: #666; font-size: 12px;">'
        "Este correo fue enviado desde el sistema PQRS.<br>"
        f"Respondido por: {responder}"
        "</p>"
        "</div>"
    )


def _domain_of(address: Optional[str]) -> Optional[str]:
    if address and "@" in address:
        return address.rsplit("@", 1)[1]
    return None
