"""Chat-side values produced by the formatter and consumed by adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional


class FileChunk(NamedTuple):
    label: str
    data: bytes


@dataclass
class Attachment:
    filename: str
    data: bytes


@dataclass
class EmbedField:
    name: str
    value: str
    inline: bool = False

    def length(self) -> int:
        return len(self.name) + len(self.value)


@dataclass
class Embed:
    title: str = ""
    description: str = ""
    color: int = 0
    author: str = ""
    fields: List[EmbedField] = field(default_factory=list)
    image_url: Optional[str] = None

    def length(self) -> int:
        return len(self.title) + len(self.description) + len(self.author) + sum(f.length() for f in self.fields)


@dataclass
class ContentUnit:
    """One self-contained send: text body, optional embed and attachments."""

    text: str = ""
    embed: Optional[Embed] = None
    image: Optional[Attachment] = None
    file: Optional[Attachment] = None

    def text_only(self) -> bool:
        return self.embed is None and self.image is None and self.file is None


__all__ = ["FileChunk", "Attachment", "EmbedField", "Embed", "ContentUnit"]
