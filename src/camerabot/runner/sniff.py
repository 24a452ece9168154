"""Content-type sniffing for script output.

Classifies raw bytes by signature rather than by filename, following the
WHATWG MIME Sniffing Standard (https://mimesniff.spec.whatwg.org/).
At most the first 512 bytes are considered.

Signatures are checked in order; the first match wins:
    1. HTML tags, XML, PDF and PostScript headers
    2. Unicode byte-order marks (text)
    3. Images: ICO/CUR, BMP, GIF, WEBP, PNG, JPEG
    4. Audio/video: AIFF, MP3, Ogg, MIDI, AVI, WAVE, MP4, WebM
    5. Fonts and archives
    6. Text if no binary control bytes are present, else octet-stream
"""

from __future__ import annotations

from typing import Callable

from camerabot.domain.models import ContentKind

SNIFF_LEN = 512

TEXT_PLAIN = "text/plain; charset=utf-8"
OCTET_STREAM = "application/octet-stream"

# Bytes the standard treats as whitespace before markup
_WHITESPACE = b"\t\n\x0c\r "

# Control bytes that never appear in text (everything below 0x20 except
# TAB, LF, FF, CR and ESC)
_BINARY_BYTES = frozenset(
    list(range(0x00, 0x09)) + [0x0B] + list(range(0x0E, 0x1B)) + list(range(0x1C, 0x20))
)

Matcher = Callable[[bytes], bool]


# ---------------------------------------------------------------------------
# Matcher builders
# ---------------------------------------------------------------------------


def _exact(prefix: bytes) -> Matcher:
    def match(data: bytes) -> bool:
        return data.startswith(prefix)
    return match


def _masked(pattern: bytes, mask: bytes, skip_ws: bool = False) -> Matcher:
    def match(data: bytes) -> bool:
        if skip_ws:
            data = data.lstrip(_WHITESPACE)
        if len(data) < len(pattern):
            return False
        return all((d & m) == p for d, m, p in zip(data, mask, pattern))
    return match


def _html(tag: bytes) -> Matcher:
    """Case-insensitive tag match followed by a space or '>'."""
    def match(data: bytes) -> bool:
        data = data.lstrip(_WHITESPACE)
        if len(data) < len(tag) + 1:
            return False
        for d, t in zip(data, tag):
            if 0x41 <= t <= 0x5A:  # letters in the pattern match either case
                d &= 0xDF
            if d != t:
                return False
        return data[len(tag)] in b" >"
    return match


def _mp4(data: bytes) -> bool:
    """ISO base media file with an ``ftyp`` box naming an mp4 brand."""
    if len(data) < 12:
        return False
    box_size = int.from_bytes(data[:4], "big")
    if len(data) < box_size or box_size % 4 != 0:
        return False
    if data[4:8] != b"ftyp":
        return False
    for start in range(8, box_size, 4):
        if start == 12:
            # Bytes 12-15 are the minor version, not a brand
            continue
        if data[start:start + 3] == b"mp4":
            return True
    return False


_HTML_TAGS = (
    b"<!DOCTYPE HTML", b"<HTML", b"<HEAD", b"<SCRIPT", b"<IFRAME", b"<H1",
    b"<DIV", b"<FONT", b"<TABLE", b"<A", b"<STYLE", b"<TITLE", b"<B",
    b"<BODY", b"<BR", b"<P", b"<!--",
)

_RIFF_MASK = b"\xFF\xFF\xFF\xFF\x00\x00\x00\x00\xFF\xFF\xFF\xFF"

SIGNATURES: list[tuple[Matcher, str]] = [
    *[(_html(tag), "text/html; charset=utf-8") for tag in _HTML_TAGS],
    (_masked(b"<?xml", b"\xFF\xFF\xFF\xFF\xFF", skip_ws=True), "text/xml; charset=utf-8"),
    (_exact(b"%PDF-"), "application/pdf"),
    (_exact(b"%!PS-Adobe-"), "application/postscript"),
    # Byte-order marks
    (_masked(b"\xFE\xFF\x00\x00", b"\xFF\xFF\x00\x00"), "text/plain; charset=utf-16be"),
    (_masked(b"\xFF\xFE\x00\x00", b"\xFF\xFF\x00\x00"), "text/plain; charset=utf-16le"),
    (_exact(b"\xEF\xBB\xBF"), TEXT_PLAIN),
    # Images
    (_exact(b"\x00\x00\x01\x00"), "image/x-icon"),
    (_exact(b"\x00\x00\x02\x00"), "image/x-icon"),
    (_exact(b"BM"), "image/bmp"),
    (_exact(b"GIF87a"), "image/gif"),
    (_exact(b"GIF89a"), "image/gif"),
    (
        _masked(b"RIFF\x00\x00\x00\x00WEBPVP", _RIFF_MASK + b"\xFF\xFF"),
        "image/webp",
    ),
    (_exact(b"\x89PNG\x0D\x0A\x1A\x0A"), "image/png"),
    (_exact(b"\xFF\xD8\xFF"), "image/jpeg"),
    # Audio and video
    (_masked(b"FORM\x00\x00\x00\x00AIFF", _RIFF_MASK), "audio/aiff"),
    (_exact(b"ID3"), "audio/mpeg"),
    (_exact(b"OggS\x00"), "application/ogg"),
    (_exact(b"MThd\x00\x00\x00\x06"), "audio/midi"),
    (_masked(b"RIFF\x00\x00\x00\x00AVI ", _RIFF_MASK), "video/avi"),
    (_masked(b"RIFF\x00\x00\x00\x00WAVE", _RIFF_MASK), "audio/wave"),
    (_mp4, "video/mp4"),
    (_exact(b"\x1A\x45\xDF\xA3"), "video/webm"),
    # Fonts
    (
        _masked(b"\x00" * 34 + b"LP", b"\x00" * 34 + b"\xFF\xFF"),
        "application/vnd.ms-fontobject",
    ),
    (_exact(b"\x00\x01\x00\x00"), "font/ttf"),
    (_exact(b"OTTO"), "font/otf"),
    (_exact(b"ttcf"), "font/collection"),
    (_exact(b"wOFF"), "font/woff"),
    (_exact(b"wOF2"), "font/woff2"),
    # Archives
    (_exact(b"\x1F\x8B\x08"), "application/x-gzip"),
    (_exact(b"PK\x03\x04"), "application/zip"),
    (_exact(b"Rar!\x1A\x07\x00"), "application/x-rar-compressed"),
    (_exact(b"Rar!\x1A\x07\x01\x00"), "application/x-rar-compressed"),
    (_exact(b"\x00\x61\x73\x6D"), "application/wasm"),
]


def detect_content_type(data: bytes) -> str:
    """Return the MIME type sniffed from the leading bytes of ``data``.

    Always returns a valid type; falls back to ``application/octet-stream``.
    """
    head = data[:SNIFF_LEN]
    for matcher, mime in SIGNATURES:
        if matcher(head):
            return mime
    if any(b in _BINARY_BYTES for b in head):
        return OCTET_STREAM
    return TEXT_PLAIN


def classify_output(data: bytes) -> ContentKind:
    """Pick the delivery branch for script output."""
    mime = detect_content_type(data)
    if mime.startswith("image"):
        return ContentKind.IMAGE
    if mime.startswith("video"):
        return ContentKind.VIDEO
    return ContentKind.TEXT
