# utils/import_pipeline/periods.py
"""
Reporting periods an imported file can be tagged with.

Period ids are what gets stored on ImportedFile.period ("M3", "Q1", "Y1");
labels are only for the select boxes.
"""

import calendar
from typing import Dict, List, Tuple

PERIOD_TYPES: List[Tuple[str, str]] = [
    ("monthly", "Monthly Results"),
    ("quarterly", "Quarterly Results"),
    ("yearly", "Yearly Results"),
]

PERIODS: Dict[str, List[Tuple[str, str]]] = {
    "monthly": [(f"M{i}", calendar.month_name[i]) for i in range(1, 13)],
    "quarterly": [(f"Q{i}", f"Quarter {i}") for i in range(1, 5)],
    "yearly": [("Y1", "Full Year")],
}


def period_label(period_id: str) -> str:
    """'M3' -> 'March'; unknown ids are returned unchanged."""
    for options in PERIODS.values():
        for pid, label in options:
            if pid == period_id:
                return label
    return period_id
