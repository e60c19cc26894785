"""Approximate text measurement, wrapping and truncation.

Widths are estimated from the character count only, so layout never depends on
which fonts happen to be installed. Legend estimation and legend drawing both
go through these helpers.
"""

from __future__ import annotations

ELLIPSIS = "…"

# Average glyph advance as a fraction of the font size (k = 0.6)
_WIDTH_NUM = 3
_WIDTH_DEN = 5


def estimate_width(text: str, font_px: int) -> int:
    """Return ``ceil(len(text) * font_px * 0.6)`` using exact integer math."""
    return -(-len(text) * font_px * _WIDTH_NUM // _WIDTH_DEN)


def truncate(text: str, font_px: int, max_width_px: int) -> str:
    """Cut ``text`` to fit ``max_width_px``, ending in an ellipsis when cut."""
    if estimate_width(text, font_px) <= max_width_px:
        return text

    out = ""
    for ch in text:
        if estimate_width(out + ch, font_px) > max_width_px:
            break
        out += ch

    while out:
        if estimate_width(out + ELLIPSIS, font_px) <= max_width_px:
            return out + ELLIPSIS
        out = out[:-1]
    return ""


def wrap(text: str, font_px: int, max_width_px: int) -> list[str]:
    """Greedy word wrap.

    Words wider than the limit are hard-broken per character. Very narrow
    limits (12px or less) collapse to a single truncated line.
    """
    if max_width_px <= 12:
        return [truncate(text, font_px, max_width_px)]

    lines: list[str] = []
    cur = ""
    for word in text.split():
        candidate = f"{cur} {word}" if cur else word
        if estimate_width(candidate, font_px) <= max_width_px:
            cur = candidate
            continue
        if cur:
            lines.append(cur)
            cur = ""
            if estimate_width(word, font_px) <= max_width_px:
                cur = word
                continue
        pieces = _break_word(word, font_px, max_width_px)
        lines.extend(pieces[:-1])
        cur = pieces[-1]
    if cur:
        lines.append(cur)
    return lines


def _break_word(word: str, font_px: int, max_width_px: int) -> list[str]:
    pieces: list[str] = []
    buf = ""
    for ch in word:
        if estimate_width(buf + ch, font_px) <= max_width_px:
            buf += ch
        elif buf:
            pieces.append(buf)
            buf = ch
        else:
            # Not even one character fits
            return [truncate(word, font_px, max_width_px)]
    if buf:
        pieces.append(buf)
    return pieces
