import re
from typing import Optional

_HHMM = re.compile(r"^(\d{2}):(\d{2})$")


def parse_hhmm(value: Optional[str]) -> int:
    """
    "09:30" -> 570 (minutes after midnight)
    """
    m = _HHMM.match((value or "").strip())
    if not m:
        raise ValueError(f"time must be HH:MM, got {value!r}")
    h, mi = int(m.group(1)), int(m.group(2))
    if h > 23 or mi > 59:
        raise ValueError(f"time out of range: {value!r}")
    return h * 60 + mi
