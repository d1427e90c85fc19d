"""Data URI encoding and decoding.

Data URIs are the only image interchange format in Lumina: reference images
arrive as ``data:<mime>;base64,<payload>`` strings and generated images are
returned the same way.

Decoding is a tagged result rather than an exception.  A reference that does
not have the expected shape is skipped by the request builder, so
:func:`decode_reference` returns either a :class:`DecodedReference` or a
:class:`SkippedReference` naming why it was rejected.
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[^;,]+);base64,(?P<data>.*)$", re.DOTALL)


@dataclass(frozen=True)
class DecodedReference:
    """A well-formed data URI split into MIME type and base64 payload."""

    mime_type: str
    data: str


@dataclass(frozen=True)
class SkippedReference:
    """A reference image that was dropped, with the reason."""

    reason: str


def decode_reference(data_uri: str) -> DecodedReference | SkippedReference:
    """Split a data URI into MIME type and base64 payload.

    The payload is returned exactly as it appears in the URI, not re-encoded.
    It must be valid base64; a payload that is not is skipped like any other
    malformed reference.

    Args:
        data_uri: String of the form ``data:<mime>;base64,<payload>``.

    Returns:
        :class:`DecodedReference` for well-formed input, otherwise
        :class:`SkippedReference`.
    """
    if not isinstance(data_uri, str) or "," not in data_uri:
        return SkippedReference("missing payload separator")

    match = _DATA_URI_RE.match(data_uri)
    if match is None:
        return SkippedReference("header is not 'data:<mime>;base64'")

    data = match.group("data")
    if not data:
        return SkippedReference("empty payload")

    try:
        base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        return SkippedReference("payload is not valid base64")

    return DecodedReference(mime_type=match.group("mime"), data=data)


def encode_data_uri(mime_type: str, data: str) -> str:
    """Build a ``data:<mime>;base64,<data>`` URL from a base64 payload."""
    return f"data:{mime_type};base64,{data}"
