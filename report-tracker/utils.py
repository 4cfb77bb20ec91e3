import re
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Tuple
from zoneinfo import ZoneInfo

import config

# Date helpers and text cleanup shared by the sync job and the routers.

def business_today(tz_name: str = None) -> date:
    """Today's date in the business time zone, independent of the server's zone."""
    return datetime.now(ZoneInfo(tz_name or config.BUSINESS_TIMEZONE)).date()

def day_bounds(target_date: date, tz_name: str = None) -> Tuple[datetime, datetime]:
    """Start of `target_date` and start of the next day, both timezone-aware."""
    tz = ZoneInfo(tz_name or config.BUSINESS_TIMEZONE)
    start = datetime.combine(target_date, time.min, tzinfo=tz)
    end = datetime.combine(target_date + timedelta(days=1), time.min, tzinfo=tz)
    return start, end

def next_working_day(current: date) -> date:
    """The next day after `current`, skipping Saturday and Sunday."""
    nxt = current + timedelta(days=1)
    while nxt.weekday() >= 5:
        nxt += timedelta(days=1)
    return nxt


# --- Customer name cleanup ---
# Applied in order. Each entry is (pattern, replacement).
NAME_CLEANUP_RULES = [
    # "10:30 AM - Jane", "10:30AM-Jane", "9am Jane", "14:00 Jane"
    (re.compile(r"^\s*\d{1,2}(?::\d{2})?\s*(?:[ap]\.?m\.?)?(?:\s*[-–:]\s*|\s+)", re.IGNORECASE), ""),
    # "Jane and <host> ..."
    (re.compile(r"\s+and\s+" + re.escape(config.HOST_NAME) + r"\b.*$", re.IGNORECASE), ""),
    # "Jane - consultation"
    (re.compile(r"\s*-.*$"), ""),
    # "Jane (follow up)"
    (re.compile(r"\s*\(.*\)"), ""),
]

def clean_customer_name(name: str) -> str:
    for pattern, replacement in NAME_CLEANUP_RULES:
        name = pattern.sub(replacement, name)
    return name.strip()

def split_import_text(text: str) -> List[str]:
    """
    Splits pasted calendar text into cleaned customer names.

    Each non-empty line is split on commas if it has any, otherwise on " and ".
    Names are cleaned, blanks dropped and duplicates removed keeping first-seen order.
    """
    names = []
    for line in (l.strip() for l in text.splitlines()):
        if not line:
            continue
        if "," in line:
            names.extend(part.strip() for part in line.split(","))
        elif " and " in line:
            names.extend(part.strip() for part in line.split(" and "))
        else:
            names.append(line)

    cleaned = [clean_customer_name(n) for n in names if n]
    return list(dict.fromkeys(n for n in cleaned if n))


PHONE_PATTERN = re.compile(r"[\+]?[1-9][\d\s\-\(\)]{8,20}")

def extract_phone(location_text: Optional[str]) -> Optional[str]:
    """Returns the trimmed location text when it looks like it holds a phone number."""
    if not location_text:
        return None
    if PHONE_PATTERN.search(location_text):
        return location_text.strip()
    return None
