"""Line grammar for bullet outline documents.

One document line holds one bullet::

    <indent><bullet> <label> // <metadata tokens>

The bullet character gives the node kind, the optional metadata section
(after the ``//`` separator) carries visibility, highlight, the node id and
links to other nodes. Lines starting with ``//`` are comments and lines
starting with ``$`` belong to scripts.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from bullet_outline.ids import IdSupplier, IdSupplierProtocol

COMMENT_TOKEN = "//"
SCRIPT_TOKEN = "$"
COMPONENT_SEPARATOR = "//"
HIGHLIGHT_TOKEN = "[!]"
LINK_OUT_SIGIL = ">"
LINK_IN_SIGIL = "<"

DEFAULT_INDENT_SIZE = 2

# Characters that would break downstream markup in labels
_UNSAFE_LABEL_CHARS = re.compile(r"[&<>]")

# Punctuation stripped from id tokens (underscores survive)
_ID_SPECIAL_CHARS = re.compile(r"[-=&/\\#,+()$~%.'\":*?<>{}]")


class BulletKind(Enum):
    """Kind of node, given by the bullet character."""

    DEFAULT = "-"
    FLOW = ">"
    FLOW_BREAK = "<"


class Visibility(Enum):
    """Visibility marker of a bullet.

    FOLD_HIDDEN is never authored: visibility propagation writes it on the
    descendants of a folded bullet.
    """

    NORMAL = ""
    FOLD = "[+]"
    FOLD_HIDDEN = "[++]"
    HIDE = "[x]"


_VISIBILITY_TOKENS = {v.value: v for v in Visibility if v is not Visibility.NORMAL}
_BULLET_CHARS = {k.value: k for k in BulletKind}


@dataclass
class LineRecord:
    """One parsed document line.

    Attributes:
        text: Raw line text as found in the document
        line_index: 0-based position of the line in the document
        is_comment: Line starts with the comment token
        is_script: Line starts with the script token (not part of the graph)
        depth: Indentation level, -1 for blank, comment and script lines
        bullet_kind: Node kind from the bullet character
        label: Sanitized label text
        visibility: Visibility marker
        is_highlight: Highlight marker present
        explicit_id: Id authored in the metadata section, if any
        placeholder_id: Generated id used while no id is authored
        ids_in: Ids linking into this node (authored with ``<``)
        ids_out: Ids this node links to (authored with ``>``)
        has_component_section: Metadata separator present on the line
    """

    text: str = ""
    line_index: int = -1
    is_comment: bool = False
    is_script: bool = False
    depth: int = -1
    bullet_kind: BulletKind = BulletKind.DEFAULT
    label: str = ""
    visibility: Visibility = Visibility.NORMAL
    is_highlight: bool = False
    explicit_id: Optional[str] = None
    placeholder_id: str = ""
    ids_in: list[str] = field(default_factory=list)
    ids_out: list[str] = field(default_factory=list)
    has_component_section: bool = False

    @property
    def id(self) -> str:
        """Explicit id when authored, placeholder otherwise."""
        return self.explicit_id if self.explicit_id else self.placeholder_id

    @property
    def is_placeholder_id(self) -> bool:
        return not self.explicit_id

    @property
    def is_valid(self) -> bool:
        """True for bullet lines that take part in the graph."""
        return not self.is_comment and not self.is_script and self.depth >= 0


def sanitize_label(label: str) -> str:
    """Trim a label and drop characters unsafe for markup."""
    return _UNSAFE_LABEL_CHARS.sub("", label).strip()


def strip_id(token: str) -> str:
    """Remove punctuation from an id token."""
    return _ID_SPECIAL_CHARS.sub("", token)


def measure_depth(line: str, indent_size: int = DEFAULT_INDENT_SIZE) -> int:
    """Count leading indent units of a line.

    A tab is one unit. Spaces count in groups of ``indent_size``; a
    leftover partial group counts one unit per space.

    Args:
        line: Raw line
        indent_size: Number of spaces in one indent unit

    Returns:
        Number of indent units
    """
    stripped = line.lstrip()
    leading = line[: len(line) - len(stripped)]
    expanded = leading.replace("\t", " " * indent_size)
    units, leftover = divmod(len(expanded), indent_size)
    return units + leftover


def parse_line(
    raw: str,
    line_index: int,
    *,
    id_supplier: Optional[IdSupplierProtocol] = None,
    indent_size: int = DEFAULT_INDENT_SIZE,
) -> LineRecord:
    """Parse one raw document line into a LineRecord.

    Args:
        raw: Raw line text (without line terminator)
        line_index: 0-based index of the line in the document
        id_supplier: Source of placeholder ids (default: random ids)
        indent_size: Number of spaces in one indent unit

    Returns:
        Parsed record. Blank lines give an invalid record with depth -1.

    Examples:
        >>> record = parse_line("  > Compile // [+] build >link", 3)
        >>> record.depth, record.bullet_kind, record.label
        (1, <BulletKind.FLOW: '>'>, 'Compile')
        >>> record.visibility, record.explicit_id, record.ids_out
        (<Visibility.FOLD: '[+]'>, 'build', ['link'])
    """
    record = LineRecord(text=raw, line_index=line_index)

    if not raw or not raw.strip():
        return record

    working = raw.replace('"', "'")
    content = working.strip()

    if content.startswith(COMMENT_TOKEN):
        record.is_comment = True
        return record

    if content.startswith(SCRIPT_TOKEN):
        record.is_script = True
        return record

    record.depth = measure_depth(working, indent_size)

    bullet_kind = _BULLET_CHARS.get(content[0])
    if bullet_kind is not None:
        record.bullet_kind = bullet_kind
        content = content[1:]

    label, separator, metadata = content.partition(COMPONENT_SEPARATOR)
    record.label = sanitize_label(label)
    record.has_component_section = bool(separator)

    if id_supplier is None:
        id_supplier = IdSupplier()
    record.placeholder_id = id_supplier.placeholder()

    for token in metadata.split():
        if token in _VISIBILITY_TOKENS:
            record.visibility = _VISIBILITY_TOKENS[token]
        elif token == HIGHLIGHT_TOKEN:
            record.is_highlight = True
        else:
            _classify_id_token(record, token)

    return record


def _classify_id_token(record: LineRecord, token: str) -> None:
    """Route an id token to the record's own id or its link lists."""
    sigil = token[0]
    node_id = strip_id(token)
    if not node_id:
        return

    if sigil == LINK_OUT_SIGIL:
        record.ids_out.append(node_id)
    elif sigil == LINK_IN_SIGIL:
        record.ids_in.append(node_id)
    else:
        record.explicit_id = node_id


def render_component_section(record: LineRecord) -> str:
    """Render the metadata section of a record.

    Returns:
        ``"// <tokens>"``, or an empty string when there is nothing to write
    """
    tokens = []
    if record.visibility is not Visibility.NORMAL:
        tokens.append(record.visibility.value)
    if record.is_highlight:
        tokens.append(HIGHLIGHT_TOKEN)
    if record.explicit_id:
        tokens.append(record.explicit_id)
    tokens.extend(f"{LINK_OUT_SIGIL}{node_id}" for node_id in record.ids_out)
    tokens.extend(f"{LINK_IN_SIGIL}{node_id}" for node_id in record.ids_in)

    if not tokens:
        return ""
    return f"{COMPONENT_SEPARATOR} {' '.join(tokens)}"


def rewrite_line(record: LineRecord) -> str:
    """Rebuild the document line of a record with its current metadata.

    The indentation, bullet and label text before the separator are kept
    exactly as written. An empty metadata section is dropped together with
    its separator.

    Args:
        record: Valid record, possibly modified since parsing

    Returns:
        New line text
    """
    text = record.text
    separator_pos = text.find(COMPONENT_SEPARATOR, len(text) - len(text.lstrip()) + 1)
    head = text[:separator_pos] if separator_pos >= 0 else text
    head = head.rstrip()

    section = render_component_section(record)
    if not section:
        return head
    return f"{head} {section}"
