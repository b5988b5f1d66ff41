"""Decoding of the reported-issues text stored on repair jobs."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

_ITEM_RE = re.compile(r"^\[(\d+)\]\s*(.+?)(?::\s*(.+))?$")


@dataclass
class IssueItem:
    text: str
    index: Optional[int] = None
    notes: Optional[str] = None


@dataclass
class ParsedIssues:
    type: str  # checklist, legacy or unknown
    failed_items: List[IssueItem] = field(default_factory=list)
    notes: Optional[str] = None
    functional: Optional[str] = None
    cosmetic: Optional[str] = None
    raw: Optional[str] = None


def _parse_item(item: Any) -> IssueItem:
    if isinstance(item, str):
        match = _ITEM_RE.match(item)
        if match:
            notes = match.group(3)
            return IssueItem(
                index=int(match.group(1)),
                text=match.group(2).strip(),
                notes=notes.strip() if notes else None,
            )
        return IssueItem(text=item)
    if isinstance(item, dict):
        return IssueItem(
            index=item.get("itemIndex"),
            text=item.get("itemText") or "",
            notes=item.get("notes"),
        )
    return IssueItem(text=str(item))


# PUBLIC_INTERFACE
def parse_reported_issues(reported_issues: Optional[str]) -> ParsedIssues:
    """
    Read the issues text written at inspection.

    Understands the checklist JSON form ({"failedItems": [...], "notes": ...}),
    the older {"functional": ..., "cosmetic": ...} form, and falls back to
    treating anything else as free text.
    """
    if not reported_issues:
        return ParsedIssues(type="unknown")

    try:
        parsed = json.loads(reported_issues)
    except ValueError:
        return ParsedIssues(
            type="unknown",
            failed_items=[IssueItem(text=reported_issues)],
            raw=reported_issues,
        )

    if isinstance(parsed, dict) and isinstance(parsed.get("failedItems"), list):
        return ParsedIssues(
            type="checklist",
            failed_items=[_parse_item(item) for item in parsed["failedItems"]],
            notes=parsed.get("notes"),
        )

    if isinstance(parsed, dict) and ("functional" in parsed or "cosmetic" in parsed):
        functional = parsed.get("functional")
        cosmetic = parsed.get("cosmetic")
        items: List[IssueItem] = []
        if functional:
            items.append(IssueItem(text=f"Functional: {functional}"))
        if cosmetic:
            items.append(IssueItem(text=f"Cosmetic: {cosmetic}"))
        return ParsedIssues(type="legacy", failed_items=items, functional=functional, cosmetic=cosmetic)

    return ParsedIssues(type="unknown", raw=reported_issues)
