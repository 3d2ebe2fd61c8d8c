# linky_exporter/config.py
from dataclasses import dataclass, field
from pathlib import Path
import configparser

import serial


PARITIES = {
    "N": serial.PARITY_NONE,
    "ParityNone": serial.PARITY_NONE,
    "O": serial.PARITY_ODD,
    "ParityOdd": serial.PARITY_ODD,
    "E": serial.PARITY_EVEN,
    "ParityEven": serial.PARITY_EVEN,
    "M": serial.PARITY_MARK,
    "ParityMark": serial.PARITY_MARK,
    "S": serial.PARITY_SPACE,
    "ParitySpace": serial.PARITY_SPACE,
}

STOP_BITS = {
    "1": serial.STOPBITS_ONE,
    "Stop1": serial.STOPBITS_ONE,
    "15": serial.STOPBITS_ONE_POINT_FIVE,
    "Stop1Half": serial.STOPBITS_ONE_POINT_FIVE,
    "2": serial.STOPBITS_TWO,
    "Stop2": serial.STOPBITS_TWO,
}

FRAME_SIZES = (5, 6, 7, 8)


def parse_parity(value: str) -> str:
    try:
        return PARITIES[value.strip()]
    except KeyError:
        raise ValueError(f"Impossible to parse parity named {value!r}") from None


def parse_stop_bits(value: str) -> float:
    try:
        return STOP_BITS[value.strip()]
    except KeyError:
        raise ValueError(f"Impossible to parse stop bits named {value!r}") from None


def parse_frame_size(value) -> int:
    size = int(value)
    if size not in FRAME_SIZES:
        raise ValueError(f"frame size must be one of {FRAME_SIZES}, got {size}")
    return size


def parse_timeout(value) -> float | None:
    """Seconds; 0 or empty means block forever."""
    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None
    timeout = float(raw)
    if timeout < 0:
        raise ValueError(f"timeout must be >= 0, got {timeout}")
    return timeout or None


@dataclass
class SerialConfig:
    device: str = "/dev/serial0"
    baud_rate: int = 1200
    frame_size: int = serial.SEVENBITS
    parity: str = serial.PARITY_EVEN
    stop_bits: float = serial.STOPBITS_ONE
    timeout: float | None = 10.0


@dataclass
class ExporterConfig:
    address: str = "0.0.0.0"
    port: int = 9901


@dataclass
class DecoderConfig:
    strict: bool = False


@dataclass
class SimulationConfig:
    capture: str | None = None


@dataclass
class LoggingConfig:
    console_level: str = "INFO"
    console_quiet: bool = False
    debug_modules: list[str] = field(default_factory=list)


@dataclass
class AppConfig:
    serial: SerialConfig = field(default_factory=SerialConfig)
    exporter: ExporterConfig = field(default_factory=ExporterConfig)
    decoder: DecoderConfig = field(default_factory=DecoderConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class Config:
    def __init__(self, path: str):
        self.path = Path(path)
        self.parser = configparser.ConfigParser(inline_comment_prefixes=("#",))
        read = self.parser.read(self.path)
        if not read:
            raise FileNotFoundError(f"Config file not found: {self.path}")

    @classmethod
    def load(cls, path: str | None) -> AppConfig:
        if path is None:
            return AppConfig()

        cfg = cls(path)

        p = cfg.parser

        def _as_bool(value: str) -> bool:
            return value.strip().lower() == "true"

        # --- Serial ---
        serial_kwargs = {}
        if "serial" in p:
            serial_sec = p["serial"]
            if "device" in serial_sec:
                serial_kwargs["device"] = serial_sec["device"].strip()
            if "baud_rate" in serial_sec:
                serial_kwargs["baud_rate"] = int(serial_sec["baud_rate"])
            if "frame_size" in serial_sec:
                serial_kwargs["frame_size"] = parse_frame_size(serial_sec["frame_size"])
            if "parity" in serial_sec:
                serial_kwargs["parity"] = parse_parity(serial_sec["parity"])
            if "stop_bits" in serial_sec:
                serial_kwargs["stop_bits"] = parse_stop_bits(serial_sec["stop_bits"])
            if "timeout" in serial_sec:
                serial_kwargs["timeout"] = parse_timeout(serial_sec["timeout"])
        serial_cfg = SerialConfig(**serial_kwargs)

        # --- Exporter ---
        exporter_kwargs = {}
        if "exporter" in p:
            exporter_sec = p["exporter"]
            if "address" in exporter_sec:
                exporter_kwargs["address"] = exporter_sec["address"].strip()
            if "port" in exporter_sec:
                exporter_kwargs["port"] = int(exporter_sec["port"])
        exporter_cfg = ExporterConfig(**exporter_kwargs)

        # --- Decoder ---
        decoder_kwargs = {}
        if "decoder" in p and "strict" in p["decoder"]:
            decoder_kwargs["strict"] = _as_bool(p["decoder"]["strict"])
        decoder_cfg = DecoderConfig(**decoder_kwargs)

        # --- Simulation ---
        simulation_kwargs = {}
        if "simulation" in p and "capture" in p["simulation"]:
            capture = p["simulation"]["capture"].strip()
            simulation_kwargs["capture"] = capture or None
        simulation_cfg = SimulationConfig(**simulation_kwargs)

        logging_kwargs = {}
        if "logging" in p:
            logging_sec = p["logging"]
            if "console_level" in logging_sec:
                logging_kwargs["console_level"] = logging_sec["console_level"]
            if "console_quiet" in logging_sec:
                logging_kwargs["console_quiet"] = _as_bool(logging_sec["console_quiet"])
            if "debug_modules" in logging_sec:
                raw = logging_sec["debug_modules"]
                logging_kwargs["debug_modules"] = [x.strip() for x in raw.split(",") if x.strip()]
        logging_cfg = LoggingConfig(**logging_kwargs)

        return AppConfig(
            serial=serial_cfg,
            exporter=exporter_cfg,
            decoder=decoder_cfg,
            simulation=simulation_cfg,
            logging=logging_cfg,
        )
