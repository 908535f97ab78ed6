import ipaddress
import struct

import pytest

from tcpwire.checksum import InternetChecksum
from tcpwire.ipv4 import IPv4Datagram, IPv4Header
from tcpwire.parser import Parser, parse, serialize

SAMPLE_HEADER = bytes.fromhex("4500007300004000401100b861c0a80001c0a800c7".replace("00b861", "b861"))


def make_header(**fields):
    header = IPv4Header(
        len=40,
        id=7,
        ttl=64,
        src=int(ipaddress.IPv4Address("10.0.0.1")),
        dst=int(ipaddress.IPv4Address("10.0.0.2")),
    )
    for name, value in fields.items():
        setattr(header, name, value)
    header.compute_checksum()
    return header


def test_parse_sample_header():
    header = IPv4Header()
    assert parse(header, [SAMPLE_HEADER])
    assert header.len == 0x73
    assert header.proto == 0x11
    assert header.ttl == 0x40
    assert header.df and not header.mf
    assert header.cksum == 0xB861
    assert header.src == int(ipaddress.IPv4Address("192.168.0.1"))
    assert header.dst == int(ipaddress.IPv4Address("192.168.0.199"))


def test_serialize_reproduces_sample_bytes():
    header = IPv4Header()
    assert parse(header, [SAMPLE_HEADER])
    assert b"".join(serialize(header)) == SAMPLE_HEADER


def test_round_trip():
    original = make_header(tos=3, mf=True, offset=0x123, proto=17)
    restored = IPv4Header()
    assert parse(restored, serialize(original))
    assert restored == original


def test_serialized_length_matches_constant():
    assert len(b"".join(serialize(make_header()))) == IPv4Header.serialized_length()


def test_bad_checksum_fails():
    corrupted = SAMPLE_HEADER[:10] + b"\x00\x00" + SAMPLE_HEADER[12:]
    assert not parse(IPv4Header(), [corrupted])


def test_wrong_version_fails():
    assert not parse(IPv4Header(), [b"\x65" + SAMPLE_HEADER[1:]])


def test_short_header_length_fails():
    assert not parse(IPv4Header(), [b"\x44" + SAMPLE_HEADER[1:]])


def test_truncated_header_fails():
    assert not parse(IPv4Header(), [SAMPLE_HEADER[:15]])


def test_options_are_skipped():
    header = make_header(hlen=6, len=28)
    wire = b"".join(serialize(header)) + b"\x01\x01\x01\x01" + b"DATA"
    parser = Parser([wire])
    parsed = IPv4Header()
    parsed.parse(parser)
    assert not parser.has_error()
    assert parsed.hlen == 6
    assert parser.all_remaining_bytes() == b"DATA"


def test_serialize_rejects_wrong_version():
    header = make_header()
    header.ver = 5
    with pytest.raises(ValueError):
        serialize(header)


def test_payload_length():
    header = make_header(len=100)
    assert header.payload_length() == 100 - 4 * header.hlen


def test_pseudo_checksum_matches_pseudo_header_bytes():
    header = make_header(len=60)
    pseudo_header = struct.pack(
        "!IIBBH", header.src, header.dst, 0, header.proto, header.payload_length()
    )
    check = InternetChecksum()
    check.add(pseudo_header)
    assert InternetChecksum(header.pseudo_checksum()).value() == check.value()


def test_computed_checksum_verifies():
    header = make_header()
    check = InternetChecksum()
    check.add(serialize(header))
    assert check.value() == 0


def test_str():
    assert str(make_header()) == "IPv4 len=40 protocol=6 ttl=64 src=10.0.0.1 dst=10.0.0.2"


def test_datagram_round_trip():
    payload = b"hello, network"
    datagram = IPv4Datagram(header=make_header(len=IPv4Header.LENGTH + len(payload)), payload=[payload])
    restored = IPv4Datagram()
    assert parse(restored, serialize(datagram))
    assert restored.header == datagram.header
    assert b"".join(restored.payload) == payload


def test_datagram_with_bad_header_fails():
    assert not parse(IPv4Datagram(), [b"\x65" + SAMPLE_HEADER[1:] + b"xyz"])