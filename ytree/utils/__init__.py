"""工具模块

提供通用工具函数：
- 文件大小解析
- ID 生成
- slug 生成

使用示例:
    from ytree.utils import parse_file_size, generate_id, slugify
"""

from .file_size import parse_file_size, SIZE_UNITS
from .generate_id import generate_id
from .slug import slugify

__all__ = [
    "parse_file_size",
    "SIZE_UNITS",
    "generate_id",
    "slugify",
]
