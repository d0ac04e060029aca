from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

CHANNEL_TYPE_TEXT = 0
CHANNEL_TYPE_ANNOUNCEMENT = 5
ELIGIBLE_CHANNEL_TYPES = frozenset({CHANNEL_TYPE_TEXT, CHANNEL_TYPE_ANNOUNCEMENT})


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def _list_of_dicts(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


@dataclass(frozen=True)
class Guild:
    id: str
    name: str
    owner: bool = False
    icon: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Guild":
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            owner=bool(data.get("owner", False)),
            icon=_optional_str(data.get("icon")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "owner": self.owner, "icon": self.icon}


@dataclass(frozen=True)
class Channel:
    id: str
    name: str
    type: int

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Channel":
        try:
            channel_type = int(data.get("type"))
        except (TypeError, ValueError):
            channel_type = -1
        return cls(
            id=str(data.get("id") or ""),
            name=str(data.get("name") or ""),
            type=channel_type,
        )

    @property
    def is_eligible(self) -> bool:
        return self.type in ELIGIBLE_CHANNEL_TYPES


@dataclass(frozen=True)
class Author:
    id: str
    username: str
    discriminator: str | None = None
    bot: bool = False

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Author":
        return cls(
            id=str(data.get("id") or ""),
            username=str(data.get("username") or ""),
            discriminator=_optional_str(data.get("discriminator")),
            bot=bool(data.get("bot") or False),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "discriminator": self.discriminator,
            "bot": self.bot,
        }


@dataclass(frozen=True)
class Attachment:
    id: str
    filename: str
    url: str
    size: int | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Attachment":
        size = data.get("size")
        return cls(
            id=str(data.get("id") or ""),
            filename=str(data.get("filename") or ""),
            url=str(data.get("url") or ""),
            size=size if isinstance(size, int) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.filename,
            "url": self.url,
            "size": self.size,
        }


def _reply_to_id(data: dict[str, Any]) -> str | None:
    referenced = data.get("referenced_message")
    if isinstance(referenced, dict) and referenced.get("id") is not None:
        return str(referenced["id"])
    reference = data.get("message_reference")
    if isinstance(reference, dict) and reference.get("message_id") is not None:
        return str(reference["message_id"])
    return None


@dataclass(frozen=True)
class Message:
    """Snapshot of one message as the server returned it."""

    id: str
    author: Author
    content: str
    timestamp: str | None
    edited_timestamp: str | None = None
    attachments: tuple[Attachment, ...] = ()
    embeds: tuple[dict[str, Any], ...] = ()
    reactions: tuple[dict[str, Any], ...] = ()
    mentions: tuple[str, ...] = ()
    reply_to: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Message":
        if data.get("id") is None:
            raise ValueError("message payload has no id")
        author = data.get("author")
        return cls(
            id=str(data["id"]),
            author=Author.from_payload(author if isinstance(author, dict) else {}),
            content=str(data.get("content") or ""),
            timestamp=_optional_str(data.get("timestamp")),
            edited_timestamp=_optional_str(data.get("edited_timestamp")),
            attachments=tuple(
                Attachment.from_payload(a) for a in _list_of_dicts(data.get("attachments"))
            ),
            embeds=tuple(_list_of_dicts(data.get("embeds"))),
            reactions=tuple(_list_of_dicts(data.get("reactions"))),
            mentions=tuple(
                str(user.get("username") or "")
                for user in _list_of_dicts(data.get("mentions"))
            ),
            reply_to=_reply_to_id(data),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "author": self.author.to_dict(),
            "content": self.content,
            "timestamp": self.timestamp,
            "editedTimestamp": self.edited_timestamp,
            "attachments": [a.to_dict() for a in self.attachments],
            "embeds": list(self.embeds),
            "reactions": list(self.reactions),
            "mentions": list(self.mentions),
            "replyTo": self.reply_to,
        }


@dataclass
class ChannelExtractionResult:
    channel: Channel
    messages: list[Message] = field(default_factory=list)

    @property
    def message_count(self) -> int:
        return len(self.messages)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.channel.id,
            "name": self.channel.name,
            "type": self.channel.type,
            "messageCount": self.message_count,
            "messages": [m.to_dict() for m in self.messages],
        }


@dataclass
class GuildExtractionRecord:
    guild: Guild
    channels: list[ChannelExtractionResult] = field(default_factory=list)

    @property
    def total_messages(self) -> int:
        return sum(ch.message_count for ch in self.channels)

    def to_dict(self) -> dict[str, Any]:
        return {
            "guild": self.guild.to_dict(),
            "channels": [ch.to_dict() for ch in self.channels],
        }
