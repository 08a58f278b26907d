"""Case-insensitive HTTP headers.

``Headers`` is the immutable request-side view over raw ASGI byte pairs.
``merge_headers`` combines response header mappings the way middleware
defaults and per-call overrides need.
"""

from collections.abc import Iterable, Iterator, Mapping


class Headers(Mapping[str, str]):
    """Read-only, case-insensitive view over ASGI header byte pairs.

    Indexing returns the first value sent under a name; ``get_list``
    returns every one. Names iterate lowercased, once each.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: tuple[tuple[bytes, bytes], ...] = ()) -> None:
        self._raw = raw

    def _values(self, key: str) -> Iterator[str]:
        wanted = key.lower().encode("latin-1")
        return (value.decode("latin-1") for name, value in self._raw if name.lower() == wanted)

    def __getitem__(self, key: str) -> str:
        for value in self._values(key):
            return value
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and next(self._values(key), None) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(dict.fromkeys(name.decode("latin-1").lower() for name, _ in self._raw))

    def __len__(self) -> int:
        return len(set(self))

    def __repr__(self) -> str:
        return f"Headers({dict(self.items())!r})"

    def get(self, key: str, default: str | None = None) -> str | None:  # type: ignore[override]
        return next(self._values(key), default)

    def get_list(self, key: str) -> list[str]:
        return list(self._values(key))

    @property
    def raw(self) -> tuple[tuple[bytes, bytes], ...]:
        """The byte pairs exactly as the server passed them."""
        return self._raw


def merge_headers(
    *sources: Mapping[str, str] | Iterable[tuple[str, str]] | None,
) -> dict[str, str]:
    """Merge header mappings left to right, case-insensitively.

    A later source replaces an earlier value whose name differs only in
    case. The spelling of the later source is kept::

        merge_headers({"X-Frame-Options": "DENY"}, {"x-frame-options": "SAMEORIGIN"})
        # {"x-frame-options": "SAMEORIGIN"}
    """
    merged: dict[str, str] = {}
    spelling: dict[str, str] = {}
    for source in sources:
        if not source:
            continue
        pairs = source.items() if isinstance(source, Mapping) else source
        for name, value in pairs:
            lowered = name.lower()
            previous = spelling.get(lowered)
            if previous is not None:
                del merged[previous]
            spelling[lowered] = name
            merged[name] = value
    return merged
