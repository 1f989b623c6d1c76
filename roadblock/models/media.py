"""
Incident media reference.

A report carries one photo or one video. On the wire both travel in the same
``imageUrl`` string; internally they are told apart as Photo / Video.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union
from urllib.parse import urlparse


class MediaKind(str, Enum):
    PHOTO = "photo"
    VIDEO = "video"


VIDEO_EXTENSIONS = (".mp4", ".mov", ".webm", ".m4v", ".3gp")


@dataclass(frozen=True)
class Photo:
    uri: str
    kind: MediaKind = MediaKind.PHOTO


@dataclass(frozen=True)
class Video:
    uri: str
    kind: MediaKind = MediaKind.VIDEO


Media = Union[Photo, Video]


def parse_media(uri: str) -> Media:
    """
    Classify an opaque media reference.

    ``data:`` URIs are classified by their MIME type, everything else by the
    extension of the URL path. Anything unrecognised is a photo.
    """
    if not uri or not uri.strip():
        raise ValueError("media reference must not be empty")

    value = uri.strip()
    if value[:5].lower() == "data:":
        mime = value[5:].split(";", 1)[0].split(",", 1)[0].lower()
        return Video(value) if mime.startswith("video/") else Photo(value)

    path = urlparse(value).path.lower()
    if path.endswith(VIDEO_EXTENSIONS):
        return Video(value)
    return Photo(value)
