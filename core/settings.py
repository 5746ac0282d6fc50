"""Presentation settings and their enumerated option types.

Every option is decoded with an explicit fallback to its default so that a
hand-edited or outdated settings file never breaks a session.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any


class AutoAdvanceInterval(IntEnum):
    """Seconds between automatic advances."""

    SECONDS_3 = 3
    SECONDS_5 = 5
    SECONDS_10 = 10
    SECONDS_30 = 30

    @classmethod
    def decode(cls, value: Any, default: AutoAdvanceInterval | None = None) -> AutoAdvanceInterval:
        return _decode_int_enum(cls, value, default or cls.SECONDS_5)

    @property
    def milliseconds(self) -> int:
        return int(self.value) * 1000


class AutoLockDuration(IntEnum):
    """Minutes before the one-shot auto-lock fires."""

    MINUTES_1 = 1
    MINUTES_2 = 2
    MINUTES_5 = 5
    MINUTES_10 = 10
    MINUTES_15 = 15

    @classmethod
    def decode(cls, value: Any, default: AutoLockDuration | None = None) -> AutoLockDuration:
        return _decode_int_enum(cls, value, default or cls.MINUTES_5)

    @property
    def milliseconds(self) -> int:
        return int(self.value) * 60 * 1000


class ThemeMode(Enum):
    SYSTEM = "system"
    LIGHT = "light"
    DARK = "dark"

    @classmethod
    def decode(cls, value: Any) -> ThemeMode:
        """Decode `light`/`dark`/`system`, also `AppThemeMode.dark` style values."""
        raw = str(value or "").strip().lower()
        raw = raw.rsplit(".", 1)[-1]
        for member in cls:
            if member.value == raw:
                return member
        return cls.SYSTEM


def _decode_int_enum(enum_cls: Any, value: Any, default: Any) -> Any:
    if isinstance(value, bool):
        return default
    try:
        return enum_cls(int(value))
    except (TypeError, ValueError):
        return default


def _decode_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"1", "true", "yes", "on"}:
            return True
        if lowered in {"0", "false", "no", "off"}:
            return False
    return default


def _decode_positive_float(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


DEFAULT_SWIPE_VELOCITY_THRESHOLD = 500.0


@dataclass(frozen=True)
class PresentationSettings:
    """Options consumed by a presentation session."""

    auto_advance_enabled: bool = False
    auto_advance_interval: AutoAdvanceInterval = AutoAdvanceInterval.SECONDS_5
    auto_lock_enabled: bool = False
    auto_lock_minutes: AutoLockDuration = AutoLockDuration.MINUTES_5
    confirm_removal: bool = False
    swipe_to_delete_enabled: bool = True
    pinch_zoom_enabled: bool = False
    show_counter: bool = False
    swipe_velocity_threshold: float = DEFAULT_SWIPE_VELOCITY_THRESHOLD
    theme_mode: ThemeMode = ThemeMode.SYSTEM
    transition_animations: bool = True

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any] | None) -> PresentationSettings:
        """Build settings from a loosely typed mapping.

        Missing keys and invalid values fall back to the defaults above.
        """
        if not isinstance(raw, Mapping):
            return cls()
        d = cls()
        return cls(
            auto_advance_enabled=_decode_bool(
                raw.get("auto_advance_enabled"), d.auto_advance_enabled
            ),
            auto_advance_interval=AutoAdvanceInterval.decode(raw.get("auto_advance_interval")),
            auto_lock_enabled=_decode_bool(raw.get("auto_lock_enabled"), d.auto_lock_enabled),
            auto_lock_minutes=AutoLockDuration.decode(raw.get("auto_lock_minutes")),
            confirm_removal=_decode_bool(raw.get("confirm_removal"), d.confirm_removal),
            swipe_to_delete_enabled=_decode_bool(
                raw.get("swipe_to_delete_enabled"), d.swipe_to_delete_enabled
            ),
            pinch_zoom_enabled=_decode_bool(raw.get("pinch_zoom_enabled"), d.pinch_zoom_enabled),
            show_counter=_decode_bool(raw.get("show_counter"), d.show_counter),
            swipe_velocity_threshold=_decode_positive_float(
                raw.get("swipe_velocity_threshold"), d.swipe_velocity_threshold
            ),
            theme_mode=ThemeMode.decode(raw.get("theme_mode")),
            transition_animations=_decode_bool(
                raw.get("transition_animations"), d.transition_animations
            ),
        )

    def to_mapping(self) -> dict[str, Any]:
        """Serialize to plain JSON-compatible values."""
        return {
            "auto_advance_enabled": self.auto_advance_enabled,
            "auto_advance_interval": int(self.auto_advance_interval),
            "auto_lock_enabled": self.auto_lock_enabled,
            "auto_lock_minutes": int(self.auto_lock_minutes),
            "confirm_removal": self.confirm_removal,
            "swipe_to_delete_enabled": self.swipe_to_delete_enabled,
            "pinch_zoom_enabled": self.pinch_zoom_enabled,
            "show_counter": self.show_counter,
            "swipe_velocity_threshold": self.swipe_velocity_threshold,
            "theme_mode": self.theme_mode.value,
            "transition_animations": self.transition_animations,
        }
