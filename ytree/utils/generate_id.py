from uuid import uuid4


def generate_id(prefix: str = "") -> str:
    """生成节点 ID（32 位十六进制，带可选前缀）"""
    return f"{prefix}{uuid4().hex}"
