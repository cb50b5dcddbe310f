# ==============================================================================
# TUNING PARSER MODULE
# ==============================================================================
# Reads and rewrites the identity of XML tuning resources.
#
# Only the root declaration is ever touched, so this works on the raw text
# with a small regex grammar instead of an XML DOM. Everything outside the
# root tag (and the override comment) is preserved byte-for-byte.
#
# Root declaration:
#   <I c="Buff" i="buff" m="buffs.buff" n="creator:buff_Fun" s="1234">   instance
#   <M n="creator:module_name" s="5678">                                 module
#
# Attributes:
#   n = declared name, c = class, i = instance type, m = python module,
#   s = declared instance id (decimal)
#
# Override comment (directly before the root declaration):
#   <!-- TGI Override: Type=6017E896 Group=00000000 Instance=00000000075BCD15 -->
#   Every field is optional. A present field wins over anything inferred.
#
# Usage:
#   metadata = infer_metadata(text)
#   key = infer_key(metadata)
#   text = insert_override(text, KeyOverride(group=0x1234)) or text
# ==============================================================================

import re
from dataclasses import dataclass
from typing import ClassVar, Dict, List, Optional, Tuple
from xml.sax.saxutils import escape, unescape

from ..core.errors import DecodeError
from ..core.hasher import tuning_instance_for_name
from ..core.keys import ResourceKey, format_hex, parse_hex
from ..core.taxonomy import GENERIC_TUNING_TYPE, tuning_type_for_name


# ==============================================================================
# GRAMMAR
# ==============================================================================

# Things allowed before the root declaration
_PROLOG_ITEM = re.compile(r'\s*(?:<\?.*?\?>|<!--.*?-->|<!DOCTYPE[^>]*>)', re.DOTALL)
_COMMENT = re.compile(r'<!--(?P<body>.*?)-->', re.DOTALL)

_ROOT_TAG = re.compile(r'(?P<lead>\s*)<(?P<tag>[A-Za-z_][\w.:-]*)(?P<attrs>(?:[^>"\']|"[^"]*"|\'[^\']*\')*?)\s*(?P<end>/?)>', re.DOTALL)
_ATTRIBUTE = re.compile(r'(?P<name>[\w.:-]+)\s*=\s*(?:"(?P<dq>[^"]*)"|\'(?P<sq>[^\']*)\')')

_OVERRIDE_MARKER = re.compile(r'^\s*TGI\s+Override\s*:', re.IGNORECASE)
_OVERRIDE_FIELD = re.compile(r'(?P<field>Type|Group|Instance)\s*=\s*(?:0x)?(?P<value>[0-9A-Fa-f]+)',
                             re.IGNORECASE)

_ATTR_ESCAPES = {'"': "&quot;"}
_ATTR_UNESCAPES = {"&quot;": '"', "&apos;": "'"}

BOM = "\ufeff"


# ==============================================================================
# DATA CLASSES
# ==============================================================================

@dataclass(frozen=True)
class KeyOverride:
    """
    Partial key override. None means "not overridden".

    Attributes:
        type (int):     Type override (u32)
        group (int):    Group override (u32)
        instance (int): Instance override (u64)
    """
    type: Optional[int] = None
    group: Optional[int] = None
    instance: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.type is None and self.group is None and self.instance is None

    def merged_over(self, other: 'KeyOverride') -> 'KeyOverride':
        """Fields of self win; missing fields come from other."""
        return KeyOverride(
            self.type if self.type is not None else other.type,
            self.group if self.group is not None else other.group,
            self.instance if self.instance is not None else other.instance,
        )

    def to_comment(self) -> str:
        parts = []
        if self.type is not None:
            parts.append(f"Type={format_hex(self.type, 8, prefix=False)}")
        if self.group is not None:
            parts.append(f"Group={format_hex(self.group, 8, prefix=False)}")
        if self.instance is not None:
            parts.append(f"Instance={format_hex(self.instance, 16, prefix=False)}")
        return f"<!-- TGI Override: {' '.join(parts)} -->"


@dataclass
class TuningMetadata:
    """
    Identity attributes read from a tuning payload.

    Attributes:
        root_kind:         Root tag ('I' or 'M'), None if no root was found
        declared_name:     n attribute
        class_attribute:   c attribute
        instance_type:     i attribute
        module:            m attribute
        declared_instance: s attribute (informational)
        explicit_type:     Type from the override comment
        explicit_group:    Group from the override comment
        explicit_instance: Instance from the override comment
    """
    root_kind: Optional[str] = None
    declared_name: Optional[str] = None
    class_attribute: Optional[str] = None
    instance_type: Optional[str] = None
    module: Optional[str] = None
    declared_instance: Optional[int] = None
    explicit_type: Optional[int] = None
    explicit_group: Optional[int] = None
    explicit_instance: Optional[int] = None

    @property
    def override(self) -> KeyOverride:
        return KeyOverride(self.explicit_type, self.explicit_group, self.explicit_instance)


@dataclass
class TuningDocument:
    """A decoded tuning resource: its text and the identity read from it."""
    kind: ClassVar[str] = "Tuning"

    text: str
    metadata: TuningMetadata


# ==============================================================================
# LOW-LEVEL SCANNING
# ==============================================================================

def _scan_prolog(text: str) -> Tuple[int, List[re.Match]]:
    """
    Skip the XML declaration, comments and doctype before the root.

    Returns:
        (position after the prolog, comment matches found in the prolog)
    """
    pos = 1 if text.startswith(BOM) else 0
    comments = []
    while True:
        item = _PROLOG_ITEM.match(text, pos)
        if not item:
            return pos, comments
        comment = _COMMENT.search(text, item.start(), item.end())
        if comment and comment.end() == item.end():
            comments.append(comment)
        pos = item.end()


def _find_root(text: str) -> Tuple[Optional[re.Match], List[re.Match]]:
    pos, comments = _scan_prolog(text)
    return _ROOT_TAG.match(text, pos), comments


def _find_override_comment(comments: List[re.Match]) -> Optional[re.Match]:
    for comment in comments:
        if _OVERRIDE_MARKER.match(comment.group('body')):
            return comment
    return None


def _parse_attributes(attrs: str) -> Dict[str, str]:
    result = {}
    for attr in _ATTRIBUTE.finditer(attrs):
        value = attr.group('dq') if attr.group('dq') is not None else attr.group('sq')
        result[attr.group('name')] = unescape(value, _ATTR_UNESCAPES)
    return result


def _parse_override(body: str) -> KeyOverride:
    values = {}
    for item in _OVERRIDE_FIELD.finditer(body):
        values[item.group('field').lower()] = parse_hex(item.group('value'))
    return KeyOverride(values.get('type'), values.get('group'), values.get('instance'))


def _newline(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


# ==============================================================================
# INFERENCE
# ==============================================================================

def infer_metadata(text: str) -> TuningMetadata:
    """
    Read identity attributes from the root declaration and override comment.

    Text without a recognizable root yields empty metadata.

    Example:
        >>> infer_metadata('<I c="Buff" i="buff" n="buff_Fun" s="1">').class_attribute
        'Buff'
    """
    root, comments = _find_root(text)
    if not root:
        return TuningMetadata()

    attrs = _parse_attributes(root.group('attrs'))

    declared_instance = None
    if attrs.get('s'):
        try:
            declared_instance = int(attrs['s'], 0) if attrs['s'].lower().startswith('0x') else int(attrs['s'])
        except ValueError:
            declared_instance = None

    comment = _find_override_comment(comments)
    override = _parse_override(comment.group('body')) if comment else KeyOverride()

    return TuningMetadata(
        root_kind=root.group('tag'),
        declared_name=attrs.get('n'),
        class_attribute=attrs.get('c'),
        instance_type=attrs.get('i'),
        module=attrs.get('m'),
        declared_instance=declared_instance,
        explicit_type=override.type,
        explicit_group=override.group,
        explicit_instance=override.instance,
    )


def infer_type(metadata: TuningMetadata) -> int:
    """Override, then i attribute, then c attribute, then generic tuning."""
    if metadata.explicit_type is not None:
        return metadata.explicit_type
    return (tuning_type_for_name(metadata.instance_type)
            or tuning_type_for_name(metadata.class_attribute)
            or GENERIC_TUNING_TYPE)


def infer_key(metadata: TuningMetadata,
              class_bit_widths: Optional[Dict[str, int]] = None) -> ResourceKey:
    """
    Produce the best-available key for a tuning resource.

    Explicit overrides win field by field. Otherwise the type comes from the
    instance type / class attributes, the group is 0 and the instance is the
    hash of the declared name, narrowed for classes with a smaller id-space.

    Args:
        metadata: Result of infer_metadata()
        class_bit_widths: Optional class -> bit width overrides

    Returns:
        Inferred ResourceKey
    """
    type_code = infer_type(metadata)
    group = metadata.explicit_group if metadata.explicit_group is not None else 0

    if metadata.explicit_instance is not None:
        instance = metadata.explicit_instance
    elif metadata.declared_name:
        instance = tuning_instance_for_name(metadata.declared_name, metadata.root_kind,
                                            metadata.class_attribute, class_bit_widths)
    elif metadata.declared_instance is not None:
        instance = metadata.declared_instance
    else:
        instance = 0

    return ResourceKey(type_code, group, instance)


# ==============================================================================
# REWRITING
# ==============================================================================

def insert_override(text: str, override: KeyOverride) -> Optional[str]:
    """
    Write (or merge into) the override comment before the root declaration.

    Fields present in `override` replace those already in the comment; fields
    absent in both stay absent.

    Args:
        text: Tuning text
        override: Fields to set

    Returns:
        New text; the unchanged text when `override` is empty; None when the
        text has no root declaration to annotate
    """
    if override.is_empty:
        return text

    root, comments = _find_root(text)
    if not root:
        return None

    existing = _find_override_comment(comments)
    if existing:
        merged = override.merged_over(_parse_override(existing.group('body')))
        return text[:existing.start()] + merged.to_comment() + text[existing.end():]

    root_start = root.start('lead') + len(root.group('lead'))
    prefix = text[:root_start]
    comment = override.to_comment()
    if prefix and not prefix.endswith(("\n", "\r")) and prefix.strip(BOM):
        comment = _newline(text) + comment
    return prefix + comment + _newline(text) + text[root_start:]


def _set_attribute(attrs: str, name: str, value: str) -> str:
    quoted = '"' + escape(value, _ATTR_ESCAPES) + '"'
    for attr in _ATTRIBUTE.finditer(attrs):
        if attr.group('name') == name:
            value_start = attr.start('dq') - 1 if attr.group('dq') is not None else attr.start('sq') - 1
            return attrs[:value_start] + quoted + attrs[attr.end():]
    return f'{attrs} {name}={quoted}'


def rewrite_root_identity(text: str, name: str, instance: int) -> str:
    """
    Set the n and s attributes of the root declaration.

    Raises:
        DecodeError: If the text has no root declaration
    """
    root, _ = _find_root(text)
    if not root:
        raise DecodeError("tuning has no root declaration")

    attrs = root.group('attrs')
    attrs = _set_attribute(attrs, 'n', name)
    attrs = _set_attribute(attrs, 's', str(instance))
    return text[:root.start('attrs')] + attrs + text[root.end('attrs'):]


# ==============================================================================
# TUNING PARSER CLASS
# ==============================================================================

class TuningParser:
    """
    Decoder for tuning payloads.

    Usage:
        doc = TuningParser().load_from_bytes(data)
        print(doc.metadata.declared_name)
    """

    def load(self, filepath: str) -> TuningDocument:
        with open(filepath, 'rb') as f:
            return self.load_from_bytes(f.read())

    def load_from_bytes(self, data: bytes) -> TuningDocument:
        """
        Raises:
            DecodeError: If the payload is not UTF-8 text with a root declaration
        """
        try:
            text = data.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecodeError(f"tuning is not UTF-8 text: {e}")

        metadata = infer_metadata(text)
        if metadata.root_kind is None:
            raise DecodeError("tuning has no root declaration")
        return TuningDocument(text=text, metadata=metadata)
