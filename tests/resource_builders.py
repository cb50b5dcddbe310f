"""Builders for in-test resources and packages.

Usage in tests:
    from resource_builders import tuning_xml, simdata_xml, stbl_bytes
"""

import io
import struct

from PIL import Image

from resource_harvester.core.hasher import fnv64

BUFF_TYPE = 0x6017E896
BUFF_SIMDATA_GROUP = 0x0017E8F6


def tuning_xml(name, c="Buff", i="buff", root="I", s=None, prolog=True):
    instance = fnv64(name) if s is None else s
    head = '<?xml version="1.0" encoding="utf-8"?>\n' if prolog else ""
    return (
        f'{head}<{root} c="{c}" i="{i}" m="buffs.buff" n="{name}" s="{instance}">\n'
        f'  <T n="visible">True</T>\n'
        f'</{root}>'
    )


def simdata_xml(name, schema="Buff"):
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        '<SimData version="0x00000101" u="0x5B02819E">\n'
        '  <Instances>\n'
        f'    <I name="{name}" schema="{schema}" type="Object">\n'
        '      <T name="visible">1</T>\n'
        '    </I>\n'
        '  </Instances>\n'
        '</SimData>'
    )


def stbl_bytes(entries):
    body = b""
    for key, value in entries:
        raw = value.encode("utf-8")
        body += struct.pack("<IBH", key, 0, len(raw)) + raw
    data_length = sum(len(value.encode("utf-8")) + 1 for _, value in entries)
    header = b"STBL" + struct.pack("<HBQHI", 5, 0, len(entries), 0, data_length)
    return header + body


def png_bytes(width=4, height=2):
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), (255, 0, 0, 255)).save(buffer, format="PNG")
    return buffer.getvalue()
