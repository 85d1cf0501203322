"""Data structures describing host and widget color themes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Mapping, Sequence, Tuple

ColorTuple = Tuple[int, int, int]
ColorScheme = Literal["light", "dark"]


def _clamp_channel(value: Any) -> int:
    return max(0, min(255, int(value)))


def normalize_color(value: Any) -> ColorTuple:
    """Convert ``value`` into an RGB tuple, accepting hex strings or sequences."""

    if isinstance(value, str):
        text = value.strip().lstrip("#")
        if len(text) == 3:
            text = "".join(ch * 2 for ch in text)
        if len(text) != 6:
            raise ValueError(f"Unsupported color format: {value!r}")
        return tuple(int(text[i : i + 2], 16) for i in range(0, 6, 2))  # type: ignore[return-value]

    if isinstance(value, Sequence):
        items = list(value)
        if len(items) != 3:
            raise ValueError(f"RGB sequences must contain 3 values, received {value!r}")
        return tuple(_clamp_channel(component) for component in items)  # type: ignore[return-value]

    raise TypeError(f"Cannot convert {type(value)!r} to an RGB color")


def to_hex(value: ColorTuple) -> str:
    return "#" + "".join(f"{component:02x}" for component in value)


@dataclass(slots=True)
class Theme:
    """Palette for one color scheme."""

    scheme: ColorScheme
    title: str
    palette: Dict[str, ColorTuple] = field(default_factory=dict)
    radius: str = "round"
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.scheme not in ("light", "dark"):
            raise ValueError(f"Unknown color scheme {self.scheme!r}")
        self.palette = {key.strip().lower(): normalize_color(value) for key, value in self.palette.items()}
        self.metadata = dict(self.metadata or {})

    def color(self, key: str, fallback: ColorTuple | None = None) -> ColorTuple:
        lookup = key.strip().lower()
        if lookup in self.palette:
            return self.palette[lookup]
        if fallback is not None:
            return fallback
        raise KeyError(f"Theme '{self.scheme}' has no color '{key}'")

    def hex(self, key: str) -> str:
        return to_hex(self.color(key))

    def widget_config(self) -> Dict[str, Any]:
        """Theme options understood by the embedded widget (minus ``colorScheme``)."""

        return {
            "radius": self.radius,
            "color": {
                "accent": {"primary": self.hex("accent"), "level": 1},
                "surface": {
                    "background": self.hex("surface"),
                    "foreground": self.hex("foreground"),
                },
            },
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Theme":
        if "scheme" not in payload:
            raise ValueError("Theme payload missing 'scheme'")
        return cls(
            scheme=payload["scheme"],
            title=str(payload.get("title") or payload["scheme"]).strip(),
            palette=dict(payload.get("palette") or {}),
            radius=str(payload.get("radius") or "round"),
            metadata=dict(payload.get("metadata") or {}),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scheme": self.scheme,
            "title": self.title,
            "radius": self.radius,
            "metadata": dict(self.metadata),
            "palette": {key: list(value) for key, value in self.palette.items()},
        }


__all__ = ["ColorScheme", "ColorTuple", "Theme", "normalize_color", "to_hex"]
