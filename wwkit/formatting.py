"""Brace-style message formatting and strict integer parsing."""

from __future__ import annotations

from typing import Any

_DIGITS = "0123456789"
_U64_MASK = (1 << 64) - 1


def parse_int(text: str) -> int:
    """Parse an optionally negative decimal integer; empty text is zero."""
    negative = text.startswith("-")
    digits = text[1:] if negative else text
    if negative and not digits:
        raise ValueError(f"invalid integer: {text!r}")
    if any(ch not in _DIGITS for ch in digits):
        raise ValueError(f"invalid integer: {text!r}")
    value = int(digits) if digits else 0
    return -value if negative else value


def _format_int(spec: str, value: int) -> str:
    if spec == "x":
        return "0x" + format(value & _U64_MASK, "016x")
    return str(int(value))


def _format_text(spec: str, text: str) -> str:
    if not spec:
        return text
    side = spec[-1]
    if side in ("l", "r"):
        spec = spec[:-1]
    else:
        side = "r"
    try:
        width = parse_int(spec)
    except ValueError:
        raise ValueError(f"invalid width: {spec!r}") from None
    padding = " " * max(width - len(text), 0)
    return text + padding if side == "r" else padding + text


def _format_element(spec: str, elem: Any) -> str:
    if isinstance(elem, (list, tuple)):
        return "[" + ", ".join(_format_element(spec, item) for item in elem) + "]"
    if isinstance(elem, (bytes, bytearray)):
        return _format_text(spec, bytes(elem).decode("latin-1"))
    if isinstance(elem, str):
        return _format_text(spec, elem)
    if isinstance(elem, int):
        return _format_int(spec, elem)
    raise TypeError(f"cannot format value of type {type(elem).__name__}")


def format_message(template: str, *args: Any) -> str:
    """Substitute ``{}`` / ``{:spec}`` fields with ``args`` in order.

    ``{{`` yields a literal brace and an unterminated ``{`` is kept as is.
    Integers accept the ``x`` spec; strings accept a width with an optional
    ``l`` (pad on the left) or ``r`` (pad on the right, the default) suffix.
    """
    parts: list[str] = []
    position = 0
    arg_index = 0
    size = len(template)
    while position < size:
        brace = template.find("{", position)
        if brace == -1:
            parts.append(template[position:])
            break
        parts.append(template[position:brace])
        if template.startswith("{{", brace):
            parts.append("{")
            position = brace + 2
            continue
        close = template.find("}", brace + 1)
        if close == -1:
            parts.append("{")
            position = brace + 1
            continue
        _, _, spec = template[brace + 1:close].partition(":")
        if arg_index >= len(args):
            raise IndexError("not enough arguments for format string")
        parts.append(_format_element(spec, args[arg_index]))
        arg_index += 1
        position = close + 1
    return "".join(parts)