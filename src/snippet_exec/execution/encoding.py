"""Normalization of captured process output into valid text.

Console layers on some platforms emit output in a legacy narrow code page
instead of UTF-8.  Captured bytes go through three tiers: accept valid UTF-8
as is, otherwise reinterpret from the native encoding, otherwise keep ASCII
and replace every other byte with a placeholder.
"""

from __future__ import annotations

import locale
import os

UTF8 = "utf-8"


def native_encoding() -> str:
    """Return the platform's native narrow encoding.

    Example:
        ```python
        codec = native_encoding()
        ```
    """
    if os.name == "nt":
        return "mbcs"
    return locale.getpreferredencoding(False) or UTF8


class EncodingNormalizer:
    """Three-tier bytes-to-text fallback chain.

    Example:
        ```python
        text = EncodingNormalizer().normalize(b"caf\\xe9")
        ```
    """

    def __init__(self, *, encoding: str | None = None, placeholder: str = "?") -> None:
        """Bind the native encoding and the sanitize placeholder.

        Example:
            ```python
            normalizer = EncodingNormalizer(encoding="cp1252")
            ```
        """
        self.encoding = encoding or native_encoding()
        self.placeholder = placeholder

    @staticmethod
    def is_valid(data: bytes) -> bool:
        """Return True when ``data`` is well-formed UTF-8.

        Example:
            ```python
            assert EncodingNormalizer.is_valid("héllo".encode())
            ```
        """
        try:
            data.decode(UTF8)
        except UnicodeDecodeError:
            return False
        return True

    def reinterpret(self, data: bytes) -> str | None:
        """Decode ``data`` from the native encoding, or return None if that fails.

        Example:
            ```python
            text = EncodingNormalizer(encoding="cp1252").reinterpret(b"\\x80")
            ```
        """
        try:
            return data.decode(self.encoding)
        except (UnicodeDecodeError, LookupError):
            return None

    def sanitize(self, data: bytes) -> str:
        """Keep ASCII bytes and replace every other byte with the placeholder.

        Example:
            ```python
            text = EncodingNormalizer().sanitize(b"ok\\xff")
            ```
        """
        replacement = ord(self.placeholder)
        return bytes(b if b < 0x80 else replacement for b in data).decode("ascii")

    def normalize(self, data: bytes) -> str:
        """Return valid text for any byte sequence.

        Example:
            ```python
            text = EncodingNormalizer().normalize(process_stdout)
            ```
        """
        if not data:
            return ""
        if self.is_valid(data):
            return data.decode(UTF8)
        text = self.reinterpret(data)
        if text is not None:
            return text
        return self.sanitize(data)

    def encode_native(self, text: str) -> bytes:
        """Transcode ``text`` to the native encoding, replacing unencodable characters.

        Example:
            ```python
            payload = EncodingNormalizer().encode_native("echo héllo")
            ```
        """
        try:
            return text.encode(self.encoding, errors="replace")
        except LookupError:
            return text.encode(UTF8)
