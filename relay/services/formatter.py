"""
Turns device responses into chat-sized content units.

The chat platform caps the size of a single message: embed text lengths,
field counts and attachment sizes. Everything sent by the relay goes through
here first so that every unit handed to an adapter fits in one send.
"""

from __future__ import annotations

import logging
import math
import re
from typing import List

from relay.models import Attachment, ContentUnit, Embed, EmbedField, FileChunk
from wire import EmbedResponse

logger = logging.getLogger(__name__)

MAX_TITLE = 256
MAX_AUTHOR = 256
MAX_DESCRIPTION = 4096
MAX_FIELD_NAME = 256
MAX_FIELD_VALUE = 1024
MAX_FIELDS = 25
MAX_EMBED_TOTAL = 6000
MAX_ATTACHMENT_SIZE = 8 * 1024 * 1024
MAX_CONTENT = 2000

# Platforms reject empty field names/values; a zero-width space renders as blank.
BLANK = "\u200b"

MENTION_PATTERN = re.compile(r"(<@[0-9a-zA-Z]*>)")


def split_file(filename: str, data: bytes, max_size: int = MAX_ATTACHMENT_SIZE) -> List[FileChunk]:
    """Split ``data`` into chunks no larger than ``max_size``.

    A single chunk keeps the filename as its label; multiple chunks are
    labelled ``"<filename> (part N/M)"``.
    """
    if max_size <= 0:
        raise ValueError("max_size must be positive")
    total = max(1, math.ceil(len(data) / max_size))
    if total == 1:
        return [FileChunk(filename, bytes(data))]
    return [
        FileChunk(f"{filename} (part {index + 1}/{total})", bytes(data[index * max_size : (index + 1) * max_size]))
        for index in range(total)
    ]


def file_units(filename: str, data: bytes, max_size: int = MAX_ATTACHMENT_SIZE) -> List[ContentUnit]:
    return [
        ContentUnit(text=chunk.label, file=Attachment(filename, chunk.data))
        for chunk in split_file(filename, data, max_size)
    ]


def find_mentions(title: str, description: str) -> List[str]:
    return MENTION_PATTERN.findall(title) + MENTION_PATTERN.findall(description)


def extract_mentions(title: str, description: str) -> str:
    """Collect ``<@id>`` tokens from title then description, each followed by a space."""
    return "".join(f"{mention} " for mention in find_mentions(title, description))


def split_mentions(mentions: List[str], limit: int = MAX_CONTENT) -> List[str]:
    """Pack mention tokens into message bodies of at most ``limit`` characters.

    A mention is never cut in half; one too long to fit on its own is dropped.
    """
    bodies: List[str] = []
    current = ""
    for mention in mentions:
        token = f"{mention} "
        if len(token) > limit:
            logger.warning("Dropping %s character mention", len(token))
            continue
        if len(current) + len(token) > limit:
            bodies.append(current)
            current = ""
        current += token
    if current:
        bodies.append(current)
    return bodies


def split_text(text: str, limit: int) -> List[str]:
    """Split ``text`` into pieces of at most ``limit`` characters, preferring newline breaks."""
    pieces: List[str] = []
    while len(text) > limit:
        cut = text.rfind("\n", 0, limit) + 1
        if cut <= 0:
            cut = limit
        pieces.append(text[:cut])
        text = text[cut:]
    if text:
        pieces.append(text)
    return pieces


def build_units(content: EmbedResponse, max_file_size: int = MAX_ATTACHMENT_SIZE) -> List[ContentUnit]:
    """Build one or more content units from an embed response."""
    descriptions = split_text(content.description, MAX_DESCRIPTION) or [""]
    embeds = [
        Embed(
            title=_truncate(content.title, MAX_TITLE),
            description=descriptions[0],
            color=content.color,
            author=_truncate(content.author, MAX_AUTHOR),
        )
    ]
    embeds.extend(Embed(description=piece, color=content.color) for piece in descriptions[1:])

    current = embeds[-1]
    for embed_field in _fields(content):
        if len(current.fields) >= MAX_FIELDS or current.length() + embed_field.length() > MAX_EMBED_TOTAL:
            current = Embed(color=content.color)
            embeds.append(current)
        current.fields.append(embed_field)

    units: List[ContentUnit] = []
    for embed in embeds:
        # Mentions past the body limit spill into text-only units after their embed.
        bodies = split_mentions(find_mentions(embed.title, embed.description)) or [""]
        units.append(ContentUnit(text=bodies[0], embed=embed))
        units.extend(ContentUnit(text=body) for body in bodies[1:])

    snapshot = content.snapshot
    if snapshot is not None:
        if len(snapshot.data) > max_file_size:
            logger.warning(
                "Dropping snapshot %s: %s bytes exceeds attachment limit", snapshot.filename, len(snapshot.data)
            )
        else:
            units[0].image = Attachment(snapshot.filename, snapshot.data)
            embeds[0].image_url = f"attachment://{snapshot.filename}"
    return units


def _fields(content: EmbedResponse) -> List[EmbedField]:
    result: List[EmbedField] = []
    for text_field in content.textfield:
        name = _truncate(text_field.title, MAX_FIELD_NAME) or BLANK
        values = split_text(text_field.text, MAX_FIELD_VALUE) or [BLANK]
        result.append(EmbedField(name, values[0], text_field.inline))
        result.extend(EmbedField(BLANK, value, text_field.inline) for value in values[1:])
    return result


def _truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


__all__ = [
    "MAX_ATTACHMENT_SIZE",
    "MAX_CONTENT",
    "split_file",
    "file_units",
    "find_mentions",
    "extract_mentions",
    "split_mentions",
    "split_text",
    "build_units",
]
