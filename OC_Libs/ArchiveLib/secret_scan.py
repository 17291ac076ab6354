"""
Deny-list scan for sensitive field names in serialized archives.

Used on both sides of the pipeline: export refuses to write a document
that contains a forbidden field, and import validation reports one as a
blocking error.
"""

from dataclasses import dataclass, field
from typing import Iterable, List

from OC_Libs.constants import FORBIDDEN_FIELDS


@dataclass
class SecretScan:
    ok: bool
    found: List[str] = field(default_factory=list)


def find_forbidden_fields(text: str, forbidden: Iterable[str] = FORBIDDEN_FIELDS) -> SecretScan:
    """
    Scan serialized JSON text for forbidden field names.

    A field is reported when its quoted name appears anywhere in the text,
    as an object key at any depth or as a string value.

    Args:
        text: Serialized JSON
        forbidden: Field names to look for

    Returns:
        SecretScan with ``ok`` False and the offending names in ``found``
    """
    found = [name for name in forbidden if f'"{name}"' in text]
    return SecretScan(ok=not found, found=found)
