# linky_exporter/services/tic_decoder.py

from __future__ import annotations

import re
import warnings
from dataclasses import dataclass
from typing import Any

from linky_exporter.errors import TicDecodeWarning
from linky_exporter.models.snapshot import TicSnapshot


SEPARATOR = "\t"

# Bytes that may precede the label on a line (group start, frame markers).
_LEADING_NOISE = "\t\r\n\x02\x03"


# ============================================================================
# Dispatch table
# ============================================================================

@dataclass(frozen=True)
class FieldRule:
    attribute: str
    kind: str   # text, pair, u8, u16, u32, s16


INT_BOUNDS: dict[str, tuple[int, int]] = {
    "u8": (0, 0xFF),
    "u16": (0, 0xFFFF),
    "u32": (0, 0xFFFF_FFFF),
    "s16": (-0x8000, 0x7FFF),
}

_UNSIGNED_RE = re.compile(r"[0-9]+")
_SIGNED_RE = re.compile(r"[+-]?[0-9]+")


def _rules() -> dict[str, FieldRule]:
    table: dict[str, FieldRule] = {}

    for name in ("adsc", "vtic", "date", "ngtf", "ltarf", "stge",
                 "msg1", "msg2", "prm", "ntarf", "njourf", "ppointe"):
        table[name] = FieldRule(name, "text")
    table["njourf+1"] = FieldRule("njourf_next", "text")
    table["pjourf+1"] = FieldRule("pjourf_next", "text")

    u32 = ["east", "eait"]
    u32 += [f"easf{i:02d}" for i in range(1, 11)]
    u32 += [f"easd{i:02d}" for i in range(1, 5)]
    u32 += [f"erq{i}" for i in range(1, 5)]
    for name in u32:
        table[name] = FieldRule(name, "u32")

    for phase in (1, 2, 3):
        table[f"irms{phase}"] = FieldRule(f"irms{phase}", "u16")
        table[f"urms{phase}"] = FieldRule(f"urms{phase}", "u16")
        # Drawn power per phase may be negative (flow direction).
        table[f"sinsts{phase}"] = FieldRule(f"sinsts{phase}", "s16")
    table["sinsts"] = FieldRule("sinsts", "u16")
    table["sinsti"] = FieldRule("sinsti", "u16")

    for name in ("pref", "pcoup", "relais"):
        table[name] = FieldRule(name, "u8")

    for n in (1, 2, 3):
        table[f"dpm{n}"] = FieldRule(f"dpm{n}", "pair")
        table[f"fpm{n}"] = FieldRule(f"fpm{n}", "pair")

    return table


FIELD_RULES: dict[str, FieldRule] = _rules()


# ============================================================================
# Token helpers
# ============================================================================

def split_line(line: bytes | str) -> list[str]:
    """Split a raw field line into [label, payload...]."""
    if isinstance(line, bytes):
        line = line.decode("ascii", errors="replace")
    return line.lstrip(_LEADING_NOISE).rstrip("\r\n").split(SEPARATOR)


def parse_int(token: str, kind: str) -> int:
    """
    Parse a base-10 token into the range of `kind`.

    Raises ValueError for anything that is not plain digits (a sign is only
    accepted for signed kinds) or that does not fit the field width.
    """
    lo, hi = INT_BOUNDS[kind]
    pattern = _SIGNED_RE if lo < 0 else _UNSIGNED_RE
    if not pattern.fullmatch(token):
        raise ValueError(f"invalid {kind} literal {token!r}")
    value = int(token, 10)
    if not lo <= value <= hi:
        raise ValueError(f"{token!r} out of {kind} range [{lo}, {hi}]")
    return value


# ============================================================================
# Field Decoder
# ============================================================================

class FieldDecoder:
    """
    Writes one in-frame line into a TicSnapshot.

    Never raises on payload content: unknown labels are skipped, and a field
    whose payload does not decode keeps its previous value. With strict=True
    the dropped field is also reported as a TicDecodeWarning.
    """

    def __init__(self, log: Any, strict: bool = False):
        self.log = log
        self.strict = strict

    # ----------------------------------------------------------------------

    def _dropped(self, label: str, reason: str) -> None:
        if self.strict:
            message = f"TIC field {label!r} dropped: {reason}"
            self.log.warning(message)
            warnings.warn(message, TicDecodeWarning, stacklevel=3)
        else:
            self.log.debug("TIC field %r dropped: %s", label, reason)

    # ----------------------------------------------------------------------

    def decode_line(self, line: bytes | str, snapshot: TicSnapshot) -> bool:
        """Return True when the line updated the snapshot."""
        tokens = split_line(line)
        label = tokens[0].lower()

        rule = FIELD_RULES.get(label)
        if rule is None:
            return False

        payload = tokens[1:]
        if not payload:
            self._dropped(label, "missing value")
            return False

        if rule.kind == "text":
            setattr(snapshot, rule.attribute, payload[0])

        elif rule.kind == "pair":
            if len(payload) < 2:
                self._dropped(label, "missing label after timestamp")
                return False
            setattr(snapshot, f"{rule.attribute}_timestamp", payload[0])
            setattr(snapshot, rule.attribute, payload[1])

        else:
            try:
                value = parse_int(payload[0], rule.kind)
            except ValueError as exc:
                self._dropped(label, str(exc))
                return False
            setattr(snapshot, rule.attribute, value)

        snapshot.fields_seen.add(label)
        return True
