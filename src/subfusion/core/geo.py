"""Region classification of proxy nodes by their display name.

Providers encode the location of a node in its name, as a flag emoji, an ISO
country code, an English or Chinese place name, or an IATA-style city code.
``classify_region`` maps a name onto a two-letter region code using those
hints; names carrying none of them fall into ``UNKNOWN_REGION``.
"""
from __future__ import annotations

import re
from typing import Dict, List, Pattern, Tuple

from ..constants import UNKNOWN_REGION

# Ordered: the first region whose keywords match wins.
REGION_KEYWORDS: List[Tuple[str, List[str]]] = [
    ("HK", ["HK", "Hong Kong", "HongKong", "香港", "HKG"]),
    ("TW", ["TW", "Taiwan", "台湾", "台灣", "TPE"]),
    ("JP", ["JP", "Japan", "日本", "Tokyo", "Osaka", "东京", "大阪", "NRT", "KIX"]),
    ("SG", ["SG", "Singapore", "新加坡", "狮城", "SIN"]),
    ("KR", ["KR", "Korea", "韩国", "韓國", "Seoul", "首尔", "ICN"]),
    ("US", ["US", "USA", "United States", "America", "美国", "Los Angeles", "San Jose",
            "Seattle", "New York", "LAX", "SJC", "SEA", "JFK"]),
    ("GB", ["GB", "UK", "United Kingdom", "Britain", "England", "London", "英国", "LHR"]),
    ("DE", ["DE", "Germany", "德国", "Frankfurt", "FRA"]),
    ("FR", ["FR", "France", "法国", "Paris", "CDG"]),
    ("NL", ["NL", "Netherlands", "荷兰", "Amsterdam", "AMS"]),
    ("CA", ["CA", "Canada", "加拿大", "Toronto", "YYZ"]),
    ("AU", ["AU", "Australia", "澳大利亚", "Sydney", "SYD"]),
    ("RU", ["RU", "Russia", "俄罗斯", "Moscow", "SVO"]),
    ("IN", ["IN", "India", "印度", "Mumbai", "BOM"]),
    ("TR", ["TR", "Turkey", "Türkiye", "土耳其", "Istanbul", "IST"]),
    ("IR", ["IR", "Iran", "伊朗"]),
    ("AE", ["AE", "UAE", "Dubai", "阿联酋", "DXB"]),
    ("MY", ["MY", "Malaysia", "马来西亚", "KUL"]),
    ("TH", ["TH", "Thailand", "泰国", "BKK"]),
    ("VN", ["VN", "Vietnam", "越南", "SGN"]),
    ("PH", ["PH", "Philippines", "菲律宾", "MNL"]),
    ("ID", ["ID", "Indonesia", "印尼", "印度尼西亚", "CGK"]),
    ("BR", ["BR", "Brazil", "巴西", "GRU"]),
    ("AR", ["AR", "Argentina", "阿根廷"]),
    ("CN", ["CN", "China", "中国", "回国"]),
]


def country_to_flag(code: str) -> str:
    """Return the regional-indicator flag emoji for a two-letter code."""
    if not code or len(code) != 2 or not code.isalpha():
        return ""
    return "".join(chr(0x1F1E6 + ord(c) - ord("A")) for c in code.upper())


def _compile(keyword: str) -> Pattern[str]:
    if not keyword.isascii():
        return re.compile(re.escape(keyword))
    # Short codes are matched case-sensitively and must stand alone, so "US"
    # matches neither "Russia" nor "bonus".
    flags = re.IGNORECASE if len(keyword) > 3 else 0
    return re.compile(rf"(?<![A-Za-z]){re.escape(keyword)}(?![A-Za-z])", flags)


_PATTERNS: List[Tuple[str, List[Pattern[str]]]] = [
    (code, [_compile(k) for k in keywords]) for code, keywords in REGION_KEYWORDS
]
_FLAGS: Dict[str, str] = {country_to_flag(code): code for code, _ in REGION_KEYWORDS}
_FLAG_RE = re.compile("[\U0001F1E6-\U0001F1FF]{2}")


def classify_region(name: str) -> str:
    """
    Return the region code for a node name.

    A flag emoji takes precedence over textual hints. Names with no
    recognisable hint yield ``UNKNOWN_REGION``.
    """
    if not name:
        return UNKNOWN_REGION
    for flag in _FLAG_RE.findall(name):
        if flag in _FLAGS:
            return _FLAGS[flag]
    for code, patterns in _PATTERNS:
        if any(p.search(name) for p in patterns):
            return code
    return UNKNOWN_REGION


def region_emoji(region: str) -> str:
    """Flag emoji for a region code; a white flag for ``UNKNOWN_REGION``."""
    return country_to_flag(region) or "\U0001F3F3"
