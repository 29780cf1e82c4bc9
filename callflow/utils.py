"""Color helpers for the render-option builders."""

from typing import Tuple


def _rgb(hex_color: str) -> Tuple[int, int, int]:
    hex_color = hex_color.lstrip('#')
    return tuple(int(hex_color[i:i+2], 16) for i in (0, 2, 4))


def _to_hex(r: float, g: float, b: float) -> str:
    return '#{:02x}{:02x}{:02x}'.format(int(r), int(g), int(b))


def lighten_hex(hex_color: str, amount: float = 0.5) -> str:
    """Lightens a hex color by mixing it with white."""
    return _to_hex(*(c + (255 - c) * amount for c in _rgb(hex_color)))


def darken_hex(hex_color: str, amount: float) -> str:
    """Darkens a hex color by mixing it with black. amount=0 is no change, amount=1 is black."""
    return _to_hex(*(c * (1 - amount) for c in _rgb(hex_color)))


def hex_to_rgba(hex_color: str, opacity: float) -> str:
    """Converts hex color and opacity to rgba string, e.g. for edge label backgrounds."""
    r, g, b = _rgb(hex_color)
    return f'rgba({r}, {g}, {b}, {opacity})'
