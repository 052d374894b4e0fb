"""
Resources for sending mail.
https://learn.microsoft.com/en-us/graph/api/user-sendmail
The Mail object is both the request body for sendMail and a small builder
to fill it out, e.g.

    mail = Mail()
    mail.set_subject("Report")
    mail.add_recipient("a@example.com")
    mail.add_recipient("b@example.com", "B Name")
    mail.set_body("HTML", "<b>hi</b>")
    mail.add_file_attachment("report.csv", "text/plain", "a,b\\n1,2\\n")
    client.send_mail(mail, user="sender@example.com")
"""
from dataclasses import dataclass, field
from typing import List, Self
import base64

from .errors import ArgumentCountError
from .resources import GraphResourceBase

FILE_ATTACHMENT_TYPE = "#microsoft.graph.fileAttachment"


@dataclass
class EmailAddress(GraphResourceBase):
    """https://learn.microsoft.com/en-us/graph/api/resources/emailaddress"""
    address: str = field(default="")
    name: str|None = field(default=None)

    def __bool__(self) -> bool:
        return bool(self.address)

    def __str__(self) -> str:
        if self.name:
            return f"{self.name} <{self.address}>"
        return self.address

    def to_base(self) -> dict:
        b = {"address": self.address}
        if self.name is not None:
            b["name"] = self.name
        return b


@dataclass
class Recipient(GraphResourceBase):
    """https://learn.microsoft.com/en-us/graph/api/resources/recipient"""
    emailAddress: EmailAddress|dict = field(default_factory=EmailAddress)

    def __post_init__(self) -> None:
        self.fixup()

    def __bool__(self) -> bool:
        return bool(self.emailAddress)

    def __str__(self) -> str:
        return str(self.emailAddress)

    def fixup(self) -> None:
        if not isinstance(self.emailAddress, EmailAddress):
            self.emailAddress = EmailAddress.from_base(self.emailAddress)

    def to_base(self) -> dict:
        self.fixup()
        return {"emailAddress": self.emailAddress.to_base()}

    @classmethod
    def make(cls, *args: str) -> Self:
        """
        Build from (address) or (address, name).
        """
        if len(args) == 1:
            return cls(EmailAddress(address=args[0]))
        if len(args) == 2:
            return cls(EmailAddress(address=args[0], name=args[1]))
        raise ArgumentCountError(f"a recipient takes 1-2 arguments (address, name), got {len(args)}")


@dataclass
class MessageBody(GraphResourceBase):
    """https://learn.microsoft.com/en-us/graph/api/resources/itembody"""
    contentType: str = field(default="Text")
    content: str = field(default="")


@dataclass
class Attachment(GraphResourceBase):
    """
    https://learn.microsoft.com/en-us/graph/api/resources/fileattachment
    contentBytes holds the standard base64 encoding of the file.
    '@odata.type' isn't a valid attribute name so it lives in odataType.
    """
    name: str = field(default="")
    contentType: str = field(default="")
    contentBytes: str = field(default="")
    odataType: str = field(default=FILE_ATTACHMENT_TYPE)

    def __bool__(self) -> bool:
        return bool(self.name)

    def __str__(self) -> str:
        return f"{self.name}({self.contentType})"

    @property
    def content(self) -> bytes:
        return base64.standard_b64decode(self.contentBytes)

    def to_base(self) -> dict:
        return {"@odata.type": self.odataType,
                "name": self.name,
                "contentType": self.contentType,
                "contentBytes": self.contentBytes}

    @classmethod
    def from_base(cls, base: dict|None) -> Self:
        b = dict(base or {})
        return cls(name=b.get("name", ""),
                   contentType=b.get("contentType", ""),
                   contentBytes=b.get("contentBytes", ""),
                   odataType=b.get("@odata.type", FILE_ATTACHMENT_TYPE))

    @classmethod
    def from_file_content(cls, name: str, content_type: str, content: bytes|str) -> Self:
        raw = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        return cls(name=name, contentType=content_type,
                   contentBytes=base64.standard_b64encode(raw).decode("ascii"))


@dataclass
class Message(GraphResourceBase):
    """
    https://learn.microsoft.com/en-us/graph/api/resources/message
    Only the writable fields needed to send.  'from' is a keyword so
    it is held as sender.
    """
    subject: str = field(default="")
    body: MessageBody|dict = field(default_factory=MessageBody)
    toRecipients: List[Recipient|dict] = field(default_factory=list)
    ccRecipients: List[Recipient|dict] = field(default_factory=list)
    bccRecipients: List[Recipient|dict] = field(default_factory=list)
    sender: Recipient|dict = field(default_factory=Recipient)
    attachments: List[Attachment|dict] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.fixup()

    def __str__(self) -> str:
        to = ", ".join(str(r) for r in self.toRecipients)
        return f"{self.subject}<to: {to}>"

    def fixup(self) -> None:
        if not isinstance(self.body, MessageBody):
            self.body = MessageBody.from_base(self.body)
        if not isinstance(self.sender, Recipient):
            self.sender = Recipient.from_base(self.sender)
        self.toRecipients = [r if isinstance(r, Recipient) else Recipient.from_base(r) for r in self.toRecipients]
        self.ccRecipients = [r if isinstance(r, Recipient) else Recipient.from_base(r) for r in self.ccRecipients]
        self.bccRecipients = [r if isinstance(r, Recipient) else Recipient.from_base(r) for r in self.bccRecipients]
        self.attachments = [a if isinstance(a, Attachment) else Attachment.from_base(a) for a in self.attachments]

    def to_base(self) -> dict:
        """
        Graph rejects an empty 'from' so it is left out when neither its
        address nor its name is set.
        """
        self.fixup()
        b = {"subject": self.subject,
             "body": self.body.to_base(),
             "toRecipients": [r.to_base() for r in self.toRecipients],
             "ccRecipients": [r.to_base() for r in self.ccRecipients],
             "bccRecipients": [r.to_base() for r in self.bccRecipients],
             "attachments": [a.to_base() for a in self.attachments]}
        if self.sender.emailAddress.address or self.sender.emailAddress.name is not None:
            b["from"] = self.sender.to_base()
        return b

    @classmethod
    def from_base(cls, base: dict|None) -> Self:
        b = dict(base or {})
        return cls(subject=b.get("subject") or "",
                   body=b.get("body") or MessageBody(),
                   toRecipients=list(b.get("toRecipients") or []),
                   ccRecipients=list(b.get("ccRecipients") or []),
                   bccRecipients=list(b.get("bccRecipients") or []),
                   sender=b.get("from") or Recipient(),
                   attachments=list(b.get("attachments") or []))


@dataclass
class Mail(GraphResourceBase):
    """
    Request body for sendMail.  Defaults to a plain text body.
    """
    message: Message|dict = field(default_factory=Message)
    saveToSentItems: bool|None = field(default=None)

    def __post_init__(self) -> None:
        self.fixup()

    def __bool__(self) -> bool:
        return bool(self.message.toRecipients or self.message.ccRecipients or self.message.bccRecipients)

    def __str__(self) -> str:
        return str(self.message)

    def fixup(self) -> None:
        if not isinstance(self.message, Message):
            self.message = Message.from_base(self.message)

    def to_base(self) -> dict:
        self.fixup()
        b = {"message": self.message.to_base()}
        if self.saveToSentItems is not None:
            b["saveToSentItems"] = self.saveToSentItems
        return b

    @classmethod
    def from_base(cls, base: dict|None) -> Self:
        b = dict(base or {})
        return cls(message=b.get("message") or Message(),
                   saveToSentItems=b.get("saveToSentItems"))

    def set_subject(self, subject: str) -> Self:
        self.message.subject = subject
        return self

    def add_recipient(self, *recipient: str) -> Self:
        """
        Append to the To list.  First argument the address (required), second the name (optional).
        """
        self.message.toRecipients.append(Recipient.make(*recipient))
        return self

    def cc_recipient(self, *recipient: str) -> Self:
        """Append to the Cc list, same arguments as add_recipient."""
        self.message.ccRecipients.append(Recipient.make(*recipient))
        return self

    def bcc_recipient(self, *recipient: str) -> Self:
        """Append to the Bcc list, same arguments as add_recipient."""
        self.message.bccRecipients.append(Recipient.make(*recipient))
        return self

    def set_from(self, *sender: str) -> Self:
        self.message.sender = Recipient.make(*sender)
        return self

    def set_body(self, content_type: str, content: str) -> Self:
        """content_type is 'Text' or 'HTML'"""
        self.message.body = MessageBody(contentType=content_type, content=content)
        return self

    def add_file_attachment(self, name: str, content_type: str, content: bytes|str) -> Self:
        self.message.attachments.append(Attachment.from_file_content(name, content_type, content))
        return self
