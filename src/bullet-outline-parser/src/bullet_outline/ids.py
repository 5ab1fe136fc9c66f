"""Node id generation for outline bullets.

Bullets without an authored id get a placeholder id at parse time. The
placeholder never reaches the document text: when a bullet is first
referenced (for example when another bullet links to it), the caller asks
for a compact permanent id and writes it back into the line.
"""

import uuid
from typing import Protocol


class IdSupplierProtocol(Protocol):
    """Anything able to hand out placeholder and permanent ids."""

    def placeholder(self) -> str:
        ...

    def compact(self) -> str:
        ...


class IdSupplier:
    """Default id supplier backed by random UUIDs.

    Example:
        >>> supplier = IdSupplier()
        >>> supplier.placeholder()
        'id_3f2a9c1e_7b0d44'
        >>> supplier.compact()
        'id_a91c'
    """

    def placeholder(self) -> str:
        """Generate a process-unique placeholder id (``id_xxxxxxxx_xxxxxx``)."""
        hex_digits = uuid.uuid4().hex
        return f"id_{hex_digits[:8]}_{hex_digits[8:14]}"

    def compact(self) -> str:
        """Generate a short permanent id (``id_xxxx``).

        Only 65536 values exist, so callers that persist the id must check
        it against the ids already used in the document.
        """
        return f"id_{uuid.uuid4().hex[:4]}"
