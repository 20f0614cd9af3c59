"""slug 生成工具

分类节点未显式提供 slug 时，由名称自动派生：
转小写，连续的非 [a-z0-9] 字符替换为单个 "-"，去掉首尾的 "-"。

使用示例:
    >>> slugify("Home & Garden")
    'home-garden'
    >>> slugify("  Électronique  ")
    'lectronique'
"""

import re

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """由名称生成 slug，可能返回空字符串（名称中没有可用字符时）"""
    if not text:
        return ""
    return _NON_SLUG_CHARS.sub("-", text.lower()).strip("-")
