"""Serialization of Lavalink tracks into self-describing text blobs.

A blob is base64 encoded JSON carrying a schema version, the Lavalink encoded
track string, the track info map and the requester id. Lavalink can replay
the encoded string directly so a stored queue survives restarts without
re-resolving every entry.
"""

import base64
import binascii
import json
import logging
from typing import Any

import lavalink

from .errors import TrackDecodeError

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

REQUIRED_INFO_KEYS = ("identifier", "isSeekable", "author", "length", "isStream", "title", "uri")


class TrackCodec:
    """Encode/decode tracks to an opaque string suitable for a TEXT column."""

    version = SCHEMA_VERSION

    def encode(self, track: lavalink.AudioTrack) -> str:
        envelope = {
            "v": self.version,
            "encoded": track.track,
            "info": {
                "identifier": track.identifier,
                "isSeekable": track.is_seekable,
                "author": track.author,
                "length": track.duration,
                "isStream": track.stream,
                "title": track.title,
                "uri": track.uri,
                "artworkUrl": track.artwork_url,
                "isrc": track.isrc,
                "position": 0,
                "sourceName": track.source_name,
            },
            "requester": track.requester,
        }
        payload = json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)
        return base64.b64encode(payload.encode("utf-8")).decode("ascii")

    def decode(self, blob: str) -> lavalink.AudioTrack:
        envelope = self._read_envelope(blob)

        version = envelope.get("v")
        if version != self.version:
            raise TrackDecodeError(f"Unsupported track blob version: {version!r}")

        encoded = envelope.get("encoded")
        info = envelope.get("info")
        if not isinstance(encoded, str) or not encoded:
            raise TrackDecodeError("Track blob has no encoded track")
        if not isinstance(info, dict):
            raise TrackDecodeError("Track blob has no track info")

        missing = [key for key in REQUIRED_INFO_KEYS if key not in info]
        if missing:
            raise TrackDecodeError(f"Track blob is missing info fields: {', '.join(missing)}")

        try:
            requester = int(envelope.get("requester") or 0)
            return lavalink.AudioTrack({"encoded": encoded, "info": info}, requester=requester)
        except (TypeError, ValueError, KeyError) as e:
            raise TrackDecodeError(f"Track blob has invalid fields: {e}") from e

    def clone(self, track: lavalink.AudioTrack) -> lavalink.AudioTrack:
        """Return a fresh playable copy of ``track``."""
        return self.decode(self.encode(track))

    @staticmethod
    def _read_envelope(blob: str) -> dict[str, Any]:
        if not blob:
            raise TrackDecodeError("Track blob is empty")

        try:
            raw = base64.b64decode(blob.encode("ascii"), validate=True)
            envelope = json.loads(raw.decode("utf-8"))
        except (binascii.Error, UnicodeError, ValueError) as e:
            raise TrackDecodeError(f"Track blob is not readable: {e}") from e

        if not isinstance(envelope, dict):
            raise TrackDecodeError("Track blob is not an object")
        return envelope
