"""
UI/view constants centralized for reuse across view modules.
"""

from __future__ import annotations

# Exit control
EXIT_LONG_PRESS_MS: int = 600  # hold longer than this for an immediate secure exit
EXIT_BUTTON_SIZE_PX: int = 36

# Navigation tap zones: left/right fraction of the window width
TAP_ZONE_RATIO: float = 1.0 / 3.0

# A drag shorter than this is a tap, not a swipe
SWIPE_MIN_DISTANCE_PX: int = 40

# Zoom limits when pinch/ctrl+wheel zoom is enabled
MIN_ZOOM: float = 1.0
MAX_ZOOM: float = 4.0
ZOOM_STEP: float = 1.15

# Fade-in length of a next/previous transition
TRANSITION_MS: int = 300

# Transient feedback
TOAST_DURATION_MS: int = 2000

OVERLAY_STYLE: str = (
    "background-color: rgba(0, 0, 0, 140); color: white; border-radius: 14px; padding: 4px 12px;"
)
