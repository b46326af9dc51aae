"""Cache key construction.

Keys are colon-joined parts, for example ``library:42:game:7``. Colons and
backslashes inside a part are escaped, so a key can always be split back
into the exact parts it was built from and two different part tuples never
produce the same key.
"""

from __future__ import annotations

from dataclasses import dataclass

from gamestash.errors import InvalidCacheKeyError

_ESCAPE_MAP = {"\\": "\\\\", ":": "\\:"}
_UNESCAPE_MAP = {"\\\\": "\\", "\\:": ":"}

KeyPart = str | int


def _escape(part: KeyPart) -> str:
    result = str(part)
    for char, escaped in _ESCAPE_MAP.items():
        result = result.replace(char, escaped)
    return result


def build_key(*parts: KeyPart) -> str:
    """Join key parts into a storage key."""
    if not parts:
        raise InvalidCacheKeyError("a cache key needs at least one part")
    for part in parts:
        if part is None or str(part) == "":
            raise InvalidCacheKeyError(f"empty key part in {parts!r}")
    return ":".join(_escape(p) for p in parts)


def parse_key(key: str) -> tuple[str, ...]:
    """Split a storage key back into its parts."""
    parts: list[str] = []
    current = ""
    i = 0

    while i < len(key):
        if key[i] == "\\":
            escaped = key[i : i + 2]
            if escaped in _UNESCAPE_MAP:
                current += _UNESCAPE_MAP[escaped]
                i += 2
                continue
            current += key[i]
            i += 1
        elif key[i] == ":":
            parts.append(current)
            current = ""
            i += 1
        else:
            current += key[i]
            i += 1

    parts.append(current)
    return tuple(parts)


@dataclass(frozen=True, slots=True)
class KeySpace:
    """Key templates for one domain.

    ``collection`` -> ``<domain>:<user>``
    ``single``     -> ``<domain>:<user>:<subresource>:<id>``
    ``view``       -> ``<domain>:<view>:<user>``
    """

    domain: str
    subresource: str | None = None

    def collection(self, user_id: KeyPart) -> str:
        return build_key(self.domain, user_id)

    def single(self, user_id: KeyPart, entity_id: KeyPart) -> str:
        if self.subresource is None:
            raise InvalidCacheKeyError(
                f"key space {self.domain!r} has no subresource for single keys"
            )
        return build_key(self.domain, user_id, self.subresource, entity_id)

    def view(self, name: str, user_id: KeyPart) -> str:
        return build_key(self.domain, name, user_id)
