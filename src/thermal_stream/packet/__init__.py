"""
Packet Module
=============

Stateless parser for the self-describing GFRA packet format.

The caller supplies exactly one packet's bytes; delimiting packets on the
wire is left to the transport (see ``ConnectionManager.for_packets``).

Example:
    from thermal_stream.config import StructuredPacketConfig
    from thermal_stream.packet import parse_packet

    packet = parse_packet(data, StructuredPacketConfig(expected_packet_size=9776))
    if packet.is_valid:
        show(packet.thermal_image)
"""

from thermal_stream.packet.models import ParsedPacket
from thermal_stream.packet.parser import (
    EXPECTED_FRAME_TYPE,
    EXPECTED_PAYLOAD_LEN,
    PACKET_PREFIX,
    build_packet,
    parse_hex_u16,
    parse_packet,
)


__all__ = [
    "ParsedPacket",
    "parse_packet",
    "build_packet",
    "parse_hex_u16",
    "PACKET_PREFIX",
    "EXPECTED_PAYLOAD_LEN",
    "EXPECTED_FRAME_TYPE",
]
