# ==============================================================================
# SIMDATA PARSER MODULE
# ==============================================================================
# Reads SimData resources in both of their stored forms.
#
#   - XML form:    <SimData ...><Instances><I name="..." schema="..." ...>
#                  Instance names can be read and rewritten.
#   - Binary form: starts with "DATA". Only the header and the table names are
#                  read; the payload is kept as opaque bytes.
#
# Binary layout (little-endian, offsets relative to their own field):
#   - Signature "DATA" (4 bytes)
#   - Version (uint32)
#   - Table info offset (int32)
#   - Table count (int32)
#   - Schema offset (int32)
#   - Schema count (int32)
#   Table info (28 bytes each):
#     - Name offset (int32, 0x80000000 = no name)
#     - Name hash (uint32)
#     - Schema offset, data type, row size, row offset, row count
# ==============================================================================

import re
import struct
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional
from xml.sax.saxutils import escape, unescape

from ..core.errors import DecodeError


SIMDATA_SIGNATURE = b"DATA"
NULL_OFFSET = -0x80000000
TABLE_INFO_SIZE = 28

_ATTR_ESCAPES = {'"': "&quot;"}
_ATTR_UNESCAPES = {"&quot;": '"', "&apos;": "'"}

_SIMDATA_ROOT = re.compile(r'<SimData\b[^>]*>', re.IGNORECASE)
_INSTANCES = re.compile(r'<Instances\b[^>]*>(?P<body>.*?)</Instances>', re.DOTALL)
_INSTANCE_TAG = re.compile(r'<I\b(?P<attrs>(?:[^>"\']|"[^"]*"|\'[^\']*\')*)>')
_NAME_ATTR = re.compile(r'(\bname\s*=\s*)(?:"([^"]*)"|\'([^\']*)\')')


# ==============================================================================
# DATA CLASSES
# ==============================================================================

@dataclass
class SimDataDocument:
    """
    A decoded SimData resource.

    Attributes:
        instance_names: Names of the instances (XML) or named tables (binary)
        is_binary:      Whether the payload is the binary DATA form
        text:           XML text (None for the binary form)
        version:        Binary format version (None for the XML form)
    """
    kind: ClassVar[str] = "SimData"

    instance_names: List[str] = field(default_factory=list)
    is_binary: bool = False
    text: Optional[str] = None
    version: Optional[int] = None

    @property
    def name(self) -> Optional[str]:
        """Name of the first instance, if any."""
        return self.instance_names[0] if self.instance_names else None


# ==============================================================================
# XML FORM
# ==============================================================================

def parse_simdata_xml(text: str) -> SimDataDocument:
    """
    Read instance names out of an XML SimData document.

    Raises:
        DecodeError: If the text has no <SimData> root
    """
    if not _SIMDATA_ROOT.search(text):
        raise DecodeError("missing <SimData> root")

    names = []
    instances = _INSTANCES.search(text)
    if instances:
        for tag in _INSTANCE_TAG.finditer(instances.group('body')):
            name = _NAME_ATTR.search(tag.group('attrs'))
            if name:
                value = name.group(2) if name.group(2) is not None else name.group(3)
                names.append(unescape(value, _ATTR_UNESCAPES))

    return SimDataDocument(instance_names=names, text=text)


def rename_simdata_instance(text: str, new_name: str) -> str:
    """
    Set the name of the first instance in an XML SimData document.

    The rest of the document is left untouched.

    Raises:
        DecodeError: If the document has no named instance
    """
    instances = _INSTANCES.search(text)
    if not instances:
        raise DecodeError("SimData has no <Instances> block")

    body_start = instances.start('body')
    tag = _INSTANCE_TAG.search(text, body_start, instances.end('body'))
    if not tag:
        raise DecodeError("SimData has no instance to rename")

    attrs_start = tag.start('attrs')
    name = _NAME_ATTR.search(tag.group('attrs'))
    quoted = '"' + escape(new_name, _ATTR_ESCAPES) + '"'

    if name:
        start = attrs_start + name.start() + len(name.group(1))
        end = attrs_start + name.end()
        return text[:start] + quoted + text[end:]

    insert_at = attrs_start
    return text[:insert_at] + f' name={quoted}' + text[insert_at:]


# ==============================================================================
# BINARY FORM
# ==============================================================================

def _read_cstring(data: bytes, offset: int) -> str:
    end = data.find(b"\x00", offset)
    if end < 0:
        raise DecodeError("unterminated SimData string", {"offset": offset})
    return data[offset:end].decode('utf-8', errors='replace')


def parse_simdata_binary(data: bytes) -> SimDataDocument:
    """
    Read the header and table names of a binary SimData resource.

    Raises:
        DecodeError: On a bad signature or out-of-range offsets
    """
    if data[:4] != SIMDATA_SIGNATURE:
        raise DecodeError("missing DATA signature")

    try:
        version, table_offset, table_count = struct.unpack_from('<Iii', data, 4)
        table_pos = 8 + table_offset
        if table_count < 0 or table_pos < 0 or table_pos + table_count * TABLE_INFO_SIZE > len(data):
            raise DecodeError("SimData table info out of range",
                              {"offset": table_pos, "count": table_count})

        names = []
        for index in range(table_count):
            pos = table_pos + index * TABLE_INFO_SIZE
            (name_offset,) = struct.unpack_from('<i', data, pos)
            if name_offset == NULL_OFFSET:
                continue
            names.append(_read_cstring(data, pos + name_offset))
    except struct.error as e:
        raise DecodeError(f"truncated SimData: {e}")

    return SimDataDocument(instance_names=names, is_binary=True, version=version)


# ==============================================================================
# SIMDATA PARSER CLASS
# ==============================================================================

class SimDataParser:
    """
    Parser for SimData resources in either form.

    Usage:
        doc = SimDataParser().load_from_bytes(data)
        if not doc.is_binary:
            print(doc.instance_names)
    """

    def load(self, filepath: str) -> SimDataDocument:
        with open(filepath, 'rb') as f:
            return self.load_from_bytes(f.read())

    def load_from_bytes(self, data: bytes) -> SimDataDocument:
        if data[:4] == SIMDATA_SIGNATURE:
            return parse_simdata_binary(data)

        try:
            text = data.decode('utf-8-sig')
        except UnicodeDecodeError as e:
            raise DecodeError(f"SimData is neither DATA nor UTF-8 XML: {e}")
        return parse_simdata_xml(text)
