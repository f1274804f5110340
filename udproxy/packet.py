"""Wire format of PDP-11 front panel packets and their JSON rendering."""

from __future__ import annotations

import json
import struct
from dataclasses import asdict, astuple, dataclass
from typing import ClassVar, Tuple

_HEADER = struct.Struct("<HI")
_STATE = struct.Struct("<IHHHHHH")

ADDRESS_MASK = 0x3FFFFF

_PARITY_ERROR_BITS = (
    (1 << 7)  # cache high byte data parity error
    | (1 << 6)  # cache low byte data parity error
    | (1 << 5)  # cache CPU tag parity error
    | (1 << 4)  # cache DMA tag parity error
)
_ADDRESS_ERROR_BITS = (1 << 6) | (1 << 5)  # address error, nonexistent memory
_MMR3_ADDR22 = 1 << 4
_MMR0_RELOCATE = 1 << 0

_KERNEL_MODE = 0
_SUPER_MODE = 1
_USER_MODE = 3


class PacketError(ValueError):
    """Raised when a packet cannot be decoded or encoded."""


@dataclass(frozen=True)
class PacketHeader:
    """Packet header: payload length and panel type flags."""

    byte_count: int
    flags: int = 0

    SIZE: ClassVar[int] = _HEADER.size

    @classmethod
    def from_bytes(cls, data: bytes) -> "PacketHeader":
        """Decode a header from the start of ``data``."""
        if len(data) < cls.SIZE:
            raise PacketError(
                f"Packet too small for header: {len(data)} bytes (need {cls.SIZE})"
            )
        return cls(*_HEADER.unpack_from(data))

    def to_bytes(self) -> bytes:
        """Encode the header in little-endian wire order."""
        try:
            return _HEADER.pack(self.byte_count, self.flags)
        except struct.error as exc:
            raise PacketError(f"Header field out of range: {exc}") from exc


@dataclass(frozen=True)
class PanelState:
    """Register snapshot shown on the front panel."""

    address: int = 0
    data: int = 0
    psw: int = 0
    mser: int = 0
    cpu_err: int = 0
    mmr0: int = 0
    mmr3: int = 0

    SIZE: ClassVar[int] = _STATE.size

    @classmethod
    def from_bytes(cls, data: bytes) -> "PanelState":
        """Decode a panel state from the start of ``data``."""
        if len(data) < cls.SIZE:
            raise PacketError(
                f"Panel state too small: {len(data)} bytes (need {cls.SIZE})"
            )
        return cls(*_STATE.unpack_from(data))

    def to_bytes(self) -> bytes:
        """Encode the panel state in little-endian wire order."""
        try:
            return _STATE.pack(*astuple(self))
        except struct.error as exc:
            raise PacketError(f"Panel state field out of range: {exc}") from exc

    def to_dict(self) -> dict:
        """Interpret the registers as the lamps shown on the panel."""
        mode = (self.psw >> 14) & 0x3
        addr22 = bool(self.mmr3 & _MMR3_ADDR22)
        addr18 = bool(self.mmr0 & _MMR0_RELOCATE) and not addr22
        return {
            "address": self.address & ADDRESS_MASK,
            "data": self.data,
            "parity_error": bool(self.mser & _PARITY_ERROR_BITS),
            "address_error": bool(self.cpu_err & _ADDRESS_ERROR_BITS),
            "user_mode": mode == _USER_MODE,
            "super_mode": mode == _SUPER_MODE,
            "kernel_mode": mode == _KERNEL_MODE,
            "addr16": not (addr18 or addr22),
            "addr18": addr18,
            "addr22": addr22,
        }


def encode_packet(state: PanelState, flags: int = 0) -> bytes:
    """Build a complete packet carrying ``state``."""
    return PacketHeader(PanelState.SIZE, flags).to_bytes() + state.to_bytes()


def decode_packet(data: bytes) -> Tuple[PacketHeader, PanelState]:
    """Decode a packet, checking its length and payload size.

    Bytes beyond the declared payload are ignored.
    """
    data = bytes(data)
    header = PacketHeader.from_bytes(data)
    expected = PacketHeader.SIZE + header.byte_count
    if len(data) < expected:
        raise PacketError(
            f"Packet too small: {len(data)} bytes (need {expected} total, "
            f"header={PacketHeader.SIZE} + payload={header.byte_count})"
        )
    if header.byte_count != PanelState.SIZE:
        raise PacketError(
            f"Invalid payload size: {header.byte_count} bytes "
            f"(expected {PanelState.SIZE} for PDP panel state)"
        )
    return header, PanelState.from_bytes(data[PacketHeader.SIZE:])


def packet_to_json(data: bytes) -> str:
    """Decode a packet and render its panel lamps as compact JSON."""
    _, state = decode_packet(data)
    return json.dumps(state.to_dict(), separators=(",", ":"), sort_keys=True)