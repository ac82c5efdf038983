"""
Reports Package

Report snapshots and text rendering, plus the guidance texts used when a
message is neither a transaction nor a report query.
"""

from financeai.reports.generator import Report, ReportGenerator
from financeai.reports.guidance import (
    EMPTY_MESSAGE_PROMPT,
    GUIDANCE_RESPONSES,
    TRANSFER_GUIDANCE,
    WELCOME_MESSAGE,
    Chooser,
    GuidanceResponder,
    index_chooser,
    seeded_chooser,
)

__all__ = [
    # Reports
    "Report",
    "ReportGenerator",
    # Guidance
    "Chooser",
    "GuidanceResponder",
    "index_chooser",
    "seeded_chooser",
    # Texts
    "EMPTY_MESSAGE_PROMPT",
    "GUIDANCE_RESPONSES",
    "TRANSFER_GUIDANCE",
    "WELCOME_MESSAGE",
]
