"""Order-reference extraction from invoice header text."""

import re
from typing import Optional

# Sevdesk titles cancellation invoices "Stornorechnung ..."
CANCELLATION_MARKERS = ("storno", "cancellation")

_REFERENCE_PATTERN = re.compile(r"#([A-Za-z0-9]+)")


def is_cancellation(header: Optional[str]) -> bool:
    if not header:
        return False
    lowered = header.lower()
    return any(marker in lowered for marker in CANCELLATION_MARKERS)


def extract_order_reference(header: Optional[str]) -> Optional[str]:
    """Return the upper-cased token after the first '#' in the header.

    Cancellation invoices never yield a reference, whatever else the header
    contains.

    >>> extract_order_reference("Rechnung zum Auftrag #pe4994")
    'PE4994'
    >>> extract_order_reference("Stornorechnung zu Auftrag #1001") is None
    True
    """
    if not header or is_cancellation(header):
        return None
    match = _REFERENCE_PATTERN.search(header)
    if not match:
        return None
    return match.group(1).upper()
