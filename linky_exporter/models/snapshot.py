# linky_exporter/models/snapshot.py
from dataclasses import dataclass, field, fields


@dataclass
class TicSnapshot:
    """Typed state of every field observed in one TIC frame.

    Absent fields keep their zero value. Integer widths follow the meter's
    field definitions (see services.tic_decoder.FIELD_RULES).
    """

    # Identity / status
    adsc: str = ""          # meter serial id
    vtic: str = ""          # protocol version
    date: str = ""
    ngtf: str = ""          # tariff schedule name
    ltarf: str = ""         # current tariff period label
    stge: str = ""          # status register (hex text)
    msg1: str = ""
    msg2: str = ""
    prm: str = ""           # delivery point id
    ntarf: str = ""         # current tariff index

    # Cumulative energy counters, Wh / VArh (u32)
    east: int = 0
    easf01: int = 0
    easf02: int = 0
    easf03: int = 0
    easf04: int = 0
    easf05: int = 0
    easf06: int = 0
    easf07: int = 0
    easf08: int = 0
    easf09: int = 0
    easf10: int = 0
    easd01: int = 0
    easd02: int = 0
    easd03: int = 0
    easd04: int = 0
    eait: int = 0
    erq1: int = 0
    erq2: int = 0
    erq3: int = 0
    erq4: int = 0

    # Instantaneous current (A) and voltage (V) per phase (u16)
    irms1: int = 0
    irms2: int = 0
    irms3: int = 0
    urms1: int = 0
    urms2: int = 0
    urms3: int = 0

    # Power
    pref: int = 0           # kVA, u8
    pcoup: int = 0          # kVA, u8
    sinsts: int = 0         # VA, u16
    sinsts1: int = 0        # VA, s16
    sinsts2: int = 0
    sinsts3: int = 0
    sinsti: int = 0         # VA, u16

    # Mobile peak schedule (label, timestamp)
    dpm1: str = ""
    dpm1_timestamp: str = ""
    fpm1: str = ""
    fpm1_timestamp: str = ""
    dpm2: str = ""
    dpm2_timestamp: str = ""
    fpm2: str = ""
    fpm2_timestamp: str = ""
    dpm3: str = ""
    dpm3_timestamp: str = ""
    fpm3: str = ""
    fpm3_timestamp: str = ""
    ppointe: str = ""

    # Relays, bit per relay (u8)
    relais: int = 0

    # Provider calendar
    njourf: str = ""
    njourf_next: str = ""   # njourf+1
    pjourf_next: str = ""   # pjourf+1

    fields_seen: set[str] = field(default_factory=set, repr=False)

    def relay_closed(self, relay: int) -> bool:
        """Relay numbers start at 1; only relay 1 is a physical one."""
        if not 1 <= relay <= 8:
            raise ValueError(f"relay must be between 1 and 8, got {relay}")
        return bool(self.relais >> (relay - 1) & 1)

    def as_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "fields_seen"}
