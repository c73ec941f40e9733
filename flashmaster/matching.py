"""
matching.py
======================

選択肢と正解文字列の照合。クイズと模擬試験の両方で使う。

AI が作る問題は正解が "A" だったり "A. りんご" だったり "りんご" だったりするので、
次の順に判定する:

1. 完全一致 / 大文字小文字を無視した一致
2. 片方が 1 文字の記号 ("A") で、もう片方がその記号で始まる ("A. ...")
3. 先頭の "A." "1、" などを取り除いた本文どうしの一致
"""

from __future__ import annotations

import re
from typing import Optional

_PREFIX_RE = re.compile(r"^([A-Za-z])[.、\s]")
_LABEL_RE = re.compile(r"^[A-Za-z0-9]+[.、\s]+")
_SINGLE_LETTER_RE = re.compile(r"^[A-Za-z]$")


def _prefix(s: str) -> Optional[str]:
    m = _PREFIX_RE.match(s)
    return m.group(1).upper() if m else None


def _content(s: str) -> str:
    return _LABEL_RE.sub("", s, count=1).strip()


def is_match(option: Optional[str], correct_answer: Optional[str]) -> bool:
    """option が correct_answer を指しているかどうか。引数の順序は問わない。"""
    if not option or not correct_answer:
        return False
    o = option.strip()
    c = correct_answer.strip()
    if not o or not c:
        return False

    if o == c or o.lower() == c.lower():
        return True

    # "A" と "A. りんご"
    if _SINGLE_LETTER_RE.match(c) and _prefix(o) == c.upper():
        return True
    if _SINGLE_LETTER_RE.match(o) and _prefix(c) == o.upper():
        return True

    # "A. りんご" と "りんご"
    o_content = _content(o)
    c_content = _content(c)
    return bool(o_content and c_content and o_content.lower() == c_content.lower())
