import json

import pytest

from udproxy.packet import (
    PacketError,
    PacketHeader,
    PanelState,
    decode_packet,
    encode_packet,
    packet_to_json,
)


def _state(**kwargs):
    return PanelState(**kwargs)


def test_header_wire_bytes():
    assert PacketHeader(16, 1).to_bytes() == b"\x10\x00\x01\x00\x00\x00"


def test_header_round_trip():
    header = PacketHeader(1234, 0xDEADBEEF)
    assert PacketHeader.from_bytes(header.to_bytes()) == header
    assert len(header.to_bytes()) == PacketHeader.SIZE


def test_state_round_trip():
    state = _state(address=0x123456, data=0o177777, psw=0xC000, mser=3, cpu_err=4, mmr0=5, mmr3=6)
    encoded = state.to_bytes()
    assert len(encoded) == PanelState.SIZE
    assert PanelState.from_bytes(encoded) == state


def test_encode_decode_round_trip():
    state = _state(address=0o17777776, data=0o1234, psw=0x4000, mmr0=1)
    header, decoded = decode_packet(encode_packet(state, flags=7))
    assert decoded == state
    assert header.flags == 7
    assert header.byte_count == PanelState.SIZE


def test_packet_length_is_header_plus_state():
    assert len(encode_packet(_state())) == PacketHeader.SIZE + PanelState.SIZE


def test_too_short_for_header():
    with pytest.raises(PacketError, match="too small for header"):
        decode_packet(b"\x10\x00\x00")


def test_empty_packet_rejected():
    with pytest.raises(PacketError):
        packet_to_json(b"")


def test_truncated_payload():
    packet = encode_packet(_state(address=1))
    with pytest.raises(PacketError, match="Packet too small"):
        decode_packet(packet[:-1])


def test_wrong_payload_size():
    payload = bytes(range(12))
    packet = PacketHeader(len(payload)).to_bytes() + payload
    with pytest.raises(PacketError, match="Invalid payload size"):
        decode_packet(packet)


def test_trailing_bytes_ignored():
    state = _state(data=42)
    _, decoded = decode_packet(encode_packet(state) + b"\xff\xff\xff")
    assert decoded == state


def test_state_from_short_bytes():
    with pytest.raises(PacketError):
        PanelState.from_bytes(b"\x00" * (PanelState.SIZE - 1))


def test_out_of_range_field_rejected():
    with pytest.raises(PacketError):
        _state(data=1 << 16).to_bytes()
    with pytest.raises(PacketError):
        PacketHeader(-1).to_bytes()


def test_address_masked_to_22_bits():
    assert _state(address=0xFFFFFFFF).to_dict()["address"] == 0x3FFFFF


def test_data_passes_through():
    assert _state(data=0o123456).to_dict()["data"] == 0o123456


@pytest.mark.parametrize(
    "psw, kernel, supervisor, user",
    [
        (0x0000, True, False, False),
        (0x4000, False, True, False),
        (0x8000, False, False, False),
        (0xC000, False, False, True),
        (0x3FFF, True, False, False),
    ],
)
def test_processor_mode(psw, kernel, supervisor, user):
    lamps = _state(psw=psw).to_dict()
    assert lamps["kernel_mode"] is kernel
    assert lamps["super_mode"] is supervisor
    assert lamps["user_mode"] is user


@pytest.mark.parametrize(
    "mmr0, mmr3, addr16, addr18, addr22",
    [
        (0, 0, True, False, False),
        (1, 0, False, True, False),
        (0, 1 << 4, False, False, True),
        (1, 1 << 4, False, False, True),
        (0, 1 << 3, True, False, False),
    ],
)
def test_addressing_mode(mmr0, mmr3, addr16, addr18, addr22):
    lamps = _state(mmr0=mmr0, mmr3=mmr3).to_dict()
    assert (lamps["addr16"], lamps["addr18"], lamps["addr22"]) == (addr16, addr18, addr22)


def test_exactly_one_addressing_mode():
    for mmr0 in (0, 1):
        for mmr3 in (0, 1 << 4):
            lamps = _state(mmr0=mmr0, mmr3=mmr3).to_dict()
            assert sum((lamps["addr16"], lamps["addr18"], lamps["addr22"])) == 1


@pytest.mark.parametrize("bit, expected", [(3, False), (4, True), (5, True), (6, True), (7, True), (8, False)])
def test_parity_error_bits(bit, expected):
    assert _state(mser=1 << bit).to_dict()["parity_error"] is expected


@pytest.mark.parametrize("bit, expected", [(4, False), (5, True), (6, True), (7, False)])
def test_address_error_bits(bit, expected):
    assert _state(cpu_err=1 << bit).to_dict()["address_error"] is expected


def test_json_matches_dict():
    state = _state(address=0o777, data=0o17, psw=0xC000, mser=1 << 4, cpu_err=1 << 6, mmr0=1)
    assert json.loads(packet_to_json(encode_packet(state))) == state.to_dict()


def test_json_is_compact_with_sorted_keys():
    text = packet_to_json(encode_packet(_state(address=5)))
    assert " " not in text
    keys = list(json.loads(text))
    assert keys == sorted(keys)
    assert set(keys) == set(_state().to_dict())


def test_json_accepts_bytearray_and_memoryview():
    packet = encode_packet(_state(data=9))
    assert packet_to_json(bytearray(packet)) == packet_to_json(packet)
    assert packet_to_json(memoryview(packet)) == packet_to_json(packet)