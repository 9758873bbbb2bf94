from __future__ import annotations

from typing import Annotated, Any, List, Literal, Optional, Union

import msgpack
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import DecodeError

# Chat platform ids are unsigned 64-bit.
MAX_ID = 2**64 - 1


class WireModel(BaseModel):
    """Base for every model carried inside a frame.

    Unknown fields are ignored so older and newer peers can still talk; the
    ``kind`` tags stay strict.
    """

    model_config = ConfigDict(extra="ignore")


class ProtoFile(WireModel):
    filename: str
    data: bytes = b""


class TextField(WireModel):
    title: str = ""
    text: str = ""
    inline: bool = False


# --- Device -> relay (responses) ---------------------------------------------


class FileResponse(WireModel):
    kind: Literal["file"] = "file"
    filename: str
    data: bytes = b""


class EmbedResponse(WireModel):
    kind: Literal["embed"] = "embed"
    title: str = ""
    description: str = ""
    color: int = 0
    author: str = ""
    textfield: List[TextField] = Field(default_factory=list)
    snapshot: Optional[ProtoFile] = None


class PresenceResponse(WireModel):
    kind: Literal["presence"] = "presence"
    presence: str = ""


class SettingsResponse(WireModel):
    kind: Literal["settings"] = "settings"
    channel_id: int = Field(default=0, ge=0, le=MAX_ID)
    command_prefix: str = ""
    cycle_time: int = 0
    presence_enabled: bool = False


Response = Annotated[
    Union[FileResponse, EmbedResponse, PresenceResponse, SettingsResponse],
    Field(discriminator="kind"),
]


# --- Relay -> device (requests) ----------------------------------------------


class CommandMessage(WireModel):
    kind: Literal["command"] = "command"
    text: str = ""


class FileMessage(WireModel):
    kind: Literal["file"] = "file"
    filename: str
    data: bytes = b""


RequestMessage = Annotated[Union[CommandMessage, FileMessage], Field(discriminator="kind")]


class Request(WireModel):
    user: int = Field(default=0, ge=0, le=MAX_ID)
    message: RequestMessage


_RESPONSE_ADAPTER: TypeAdapter[Response] = TypeAdapter(Response)


def _pack(model: WireModel) -> bytes:
    return msgpack.packb(model.model_dump(), use_bin_type=True)


def _unpack(data: bytes) -> Any:
    try:
        return msgpack.unpackb(data, raw=False)
    except (ValueError, TypeError, msgpack.UnpackException) as exc:
        raise DecodeError(f"Malformed payload: {exc}") from exc


def encode_response(response: Response) -> bytes:
    return _pack(response)


def decode_response(data: bytes) -> Response:
    """Parse a device frame payload into one of the response variants."""
    raw = _unpack(data)
    try:
        return _RESPONSE_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        raise DecodeError(f"Response validation failed: {exc}") from exc


def encode_request(request: Request) -> bytes:
    return _pack(request)


def decode_request(data: bytes) -> Request:
    raw = _unpack(data)
    try:
        return Request.model_validate(raw)
    except ValidationError as exc:
        raise DecodeError(f"Request validation failed: {exc}") from exc


def command_request(user: int, text: str) -> Request:
    return Request(user=user, message=CommandMessage(text=text))


def file_request(user: int, filename: str, data: bytes) -> Request:
    return Request(user=user, message=FileMessage(filename=filename, data=data))


__all__ = [
    "WireModel",
    "ProtoFile",
    "TextField",
    "FileResponse",
    "EmbedResponse",
    "PresenceResponse",
    "SettingsResponse",
    "Response",
    "CommandMessage",
    "FileMessage",
    "RequestMessage",
    "Request",
    "encode_response",
    "decode_response",
    "encode_request",
    "decode_request",
    "command_request",
    "file_request",
]
