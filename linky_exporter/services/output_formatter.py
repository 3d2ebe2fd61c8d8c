# linky_exporter/services/output_formatter.py

from __future__ import annotations

import json
from typing import Optional

from linky_exporter.models.snapshot import TicSnapshot


def _snapshot_to_dict(snapshot: TicSnapshot, all_fields: bool = False) -> dict:
    """Decoded fields only, unless all_fields asks for zero values too."""
    values = snapshot.as_dict()
    if all_fields:
        return values
    seen = set(snapshot.fields_seen)
    # Two-value lines store a label and its timestamp.
    seen |= {f"{name}_timestamp" for name in snapshot.fields_seen}
    seen |= {name.replace("+1", "_next") for name in snapshot.fields_seen}
    return {k: v for k, v in values.items() if k in seen}


def emit_json(snapshot: TicSnapshot, *, all_fields: bool = False) -> None:
    print(json.dumps({"snapshot": _snapshot_to_dict(snapshot, all_fields)}, indent=2))


def _fmt_phases(snapshot: TicSnapshot, prefix: str, unit: str) -> Optional[str]:
    values = [getattr(snapshot, f"{prefix}{p}") for p in (1, 2, 3)]
    if not any(f"{prefix}{p}" in snapshot.fields_seen for p in (1, 2, 3)):
        return None
    return "/".join(str(v) for v in values) + unit


def emit_human(snapshot: TicSnapshot) -> None:
    seen = snapshot.fields_seen
    print(f"[{snapshot.prm or 'unknown'}] meter={snapshot.adsc or 'n/a'} tic={snapshot.vtic or 'n/a'} date={snapshot.date or 'n/a'}")

    if snapshot.ngtf or snapshot.ltarf:
        print(f"  tariff={snapshot.ngtf.strip()} period={snapshot.ltarf.strip()} index={snapshot.ntarf or 'n/a'}")

    if "east" in seen:
        print(f"  EAST={snapshot.east}Wh")
    subs = [f"{name.upper()}={getattr(snapshot, name)}Wh" for name in sorted(seen) if name.startswith(("easf", "easd"))]
    if subs:
        print("  " + "  ".join(subs))

    parts = []
    if (irms := _fmt_phases(snapshot, "irms", "A")) is not None:
        parts.append(f"I={irms}")
    if (urms := _fmt_phases(snapshot, "urms", "V")) is not None:
        parts.append(f"U={urms}")
    if "sinsts" in seen:
        parts.append(f"S={snapshot.sinsts}VA")
    if "sinsti" in seen:
        parts.append(f"Sinj={snapshot.sinsti}VA")
    if "pref" in seen:
        parts.append(f"PREF={snapshot.pref}kVA")
    if parts:
        print("  " + "  ".join(parts))

    if "relais" in seen:
        closed = [str(r) for r in range(1, 9) if snapshot.relay_closed(r)]
        print(f"  relays closed: {','.join(closed) or 'none'}")

    if snapshot.msg1.strip():
        print(f"  message: {snapshot.msg1.strip()}")
