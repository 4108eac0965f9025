"""Environment registry mapping short environment codes to display names."""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Tuple

from core.errors import PolicyError, UnknownEnvironmentError

_CODE_PATTERN = re.compile(r"[a-z0-9]+")

STANDARD_ENVIRONMENTS: Mapping[str, str] = MappingProxyType(
    {
        "p": "production",
        "pp": "preprod",
        "np": "nonprod",
        "s": "staging",
        "u": "uat",
        "t": "test",
        "d": "development",
    }
)

# Three/four character codes used by the first generation of the naming module.
LEGACY_ENVIRONMENTS: Mapping[str, str] = MappingProxyType(
    {
        "prd": "production",
        "nprd": "nonprod",
        "stg": "staging",
        "dev": "development",
    }
)


class EnvironmentRegistry:
    """Immutable lookup from environment code to its display name.

    Field validation and tag assembly both consult the same registry instance
    owned by a naming policy, so an environment accepted by validation always
    resolves to a display name.
    """

    def __init__(self, environments: Mapping[str, str]) -> None:
        if not environments:
            raise PolicyError("An environment registry needs at least one environment code.")
        entries: Dict[str, str] = {}
        for code, display in environments.items():
            code = str(code)
            if not _CODE_PATTERN.fullmatch(code):
                raise PolicyError(
                    f"Environment code '{code}' must contain only lowercase letters and digits."
                )
            if not str(display).strip():
                raise PolicyError(f"Environment code '{code}' needs a display name.")
            entries[code] = str(display)
        self._entries = MappingProxyType(entries)

    def display_name(self, code: str) -> str:
        """Return the display name for ``code`` or raise :class:`UnknownEnvironmentError`."""

        try:
            return self._entries[code]
        except KeyError:
            raise UnknownEnvironmentError(code, self._entries.keys()) from None

    def codes(self) -> Tuple[str, ...]:
        return tuple(self._entries.keys())

    def to_dict(self) -> Dict[str, str]:
        return dict(self._entries)

    def __contains__(self, code: object) -> bool:
        return code in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EnvironmentRegistry):
            return NotImplemented
        return dict(self._entries) == dict(other._entries)

    def __hash__(self) -> int:
        return hash(tuple(sorted(self._entries.items())))

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"EnvironmentRegistry({dict(self._entries)!r})"
