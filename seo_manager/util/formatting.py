"""表示用の小さな整形関数。"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

_SCORE_SUFFIX_RE = re.compile(r"\s*(\d+)\s*/\s*(\d+)\s*$")


@dataclass(frozen=True)
class IssueEntry:
    text: str
    score: Optional[int] = None
    max_score: Optional[int] = None

    @property
    def ratio(self) -> Optional[float]:
        if self.score is None or not self.max_score:
            return None
        return self.score / self.max_score


def parse_issue(raw: str) -> IssueEntry:
    """"Missing meta description 3/10" のような末尾の N/M を分離する。"""
    raw = (raw or "").strip()
    m = _SCORE_SUFFIX_RE.search(raw)
    if not m:
        return IssueEntry(text=raw)
    return IssueEntry(text=raw[: m.start()].rstrip(" :-"), score=int(m.group(1)), max_score=int(m.group(2)))


def seo_score_band(score: Optional[float]) -> str:
    """good / fair / poor / critical。"""
    if score is None:
        return "critical"
    if score >= 80:
        return "good"
    if score >= 60:
        return "fair"
    if score >= 40:
        return "poor"
    return "critical"


def format_number(num: Optional[float]) -> str:
    if num is None:
        return "0"
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    return str(num)


def format_percentage(num: Optional[float]) -> str:
    return f"{num:.2f}%" if num else "0%"


def truncate_text(text: Optional[str], max_length: int = 50) -> str:
    if not text:
        return ""
    return text[:max_length] + "..." if len(text) > max_length else text
