"""文件大小解析工具

用于解析日志配置中的 "10MB"、"512KB" 等大小字符串。

使用示例:
    from ytree.utils import parse_file_size

    size = parse_file_size("10MB")  # 返回 10485760
"""

from typing import Union


# 单位转换表（按长度降序排列）
SIZE_UNITS = [
    ('TB', 1024 ** 4),
    ('GB', 1024 ** 3),
    ('MB', 1024 ** 2),
    ('KB', 1024),
    ('B', 1),
]

# 单位别名
SIZE_UNIT_ALIASES = {
    'T': 'TB',
    'G': 'GB',
    'M': 'MB',
    'K': 'KB',
}


def parse_file_size(size_str: Union[str, int, float]) -> int:
    """解析文件大小字符串

    Args:
        size_str: 文件大小字符串，如 "10MB"，也可以直接传入字节数

    Returns:
        字节数

    Raises:
        ValueError: 格式无效
    """
    if isinstance(size_str, (int, float)):
        return int(size_str)

    text = str(size_str).strip().upper()
    if not text:
        raise ValueError("文件大小字符串不能为空")

    for alias, unit in SIZE_UNIT_ALIASES.items():
        if text.endswith(alias) and not text.endswith(unit):
            text = text[:-len(alias)] + unit
            break

    for unit, multiplier in SIZE_UNITS:
        if text.endswith(unit):
            number_str = text[:-len(unit)].strip()
            try:
                return int(float(number_str) * multiplier)
            except ValueError:
                raise ValueError(f"无法解析文件大小: {size_str}") from None

    try:
        return int(float(text))
    except ValueError:
        raise ValueError(f"无法解析文件大小: {size_str}") from None
