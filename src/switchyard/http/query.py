"""Immutable query string parameters."""

from urllib.parse import parse_qs

from switchyard._internal.multimap import MultiValueDict


class QueryParams(MultiValueDict):
    """Query string parameters parsed once from ``QUERY_STRING``."""

    __slots__ = ("_raw",)

    def __init__(self, query_string: str = "") -> None:
        super().__init__(parse_qs(query_string, keep_blank_values=True))
        object.__setattr__(self, "_raw", query_string)

    @property
    def raw(self) -> str:
        return self._raw

    def get_int(self, key: str, default: int | None = None) -> int | None:
        """Return value as int, or *default* if missing or not numeric."""
        value = self.get(key)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            return default

    def get_bool(self, key: str, default: bool | None = None) -> bool | None:
        """Return value as bool (``true``/``1``/``yes``/``on`` -> True)."""
        value = self.get(key)
        if value is None:
            return default
        return value.lower() in ("true", "1", "yes", "on")
