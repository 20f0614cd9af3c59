"""节点字段定义

提供标准的排序字段与树形节点字段 Mixin，便于业务项目声明自己的节点表。

使用示例:
    from ytree.orm import Base, TreeNodeFieldsMixin

    class ProductCategory(Base, TreeNodeFieldsMixin):
        __tablename__ = "product_category"

        id = mapped_column(String(32), primary_key=True)
        # parent_id 需要自行定义（因为外键目标表名不同）
        parent_id = mapped_column(String(32), ForeignKey("product_category.id"), nullable=True)
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column


class SortFieldMixin:
    """排序字段 Mixin

    字段说明:
        - sort_order: 同级节点中的位置，从 0 开始，值越小越靠前
    """

    sort_order: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
        index=True,
        comment="排序序号"
    )


class TreeNodeFieldsMixin(SortFieldMixin):
    """树形节点字段 Mixin

    提供节点的通用字段：
    - forest: 所属森林（category / header / footer ...），创建后不可修改
    - label / target: 显示名称与链接（或 slug）
    - active: 是否可见，停用的节点仍然保留
    - slug / description / icon / image: 分类扩展字段，导航节点可留空
    - sort_order: 继承自 SortFieldMixin

    注意：
    - id 与 parent_id 需要自行定义，外键目标表名因模型而异
    - 层级（level）与子节点不落库，每次读取时由扁平记录重建
    """

    forest: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        comment="所属森林"
    )
    label: Mapped[str] = mapped_column(String(200), nullable=False, comment="名称")
    target: Mapped[str] = mapped_column(String(500), nullable=False, comment="链接或目标")
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, comment="是否启用")

    slug: Mapped[Optional[str]] = mapped_column(String(200), nullable=True, index=True, comment="slug")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True, comment="描述")
    icon: Mapped[Optional[str]] = mapped_column(String(200), nullable=True, comment="图标")
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True, comment="图片")

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, nullable=False, comment="创建时间"
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now, nullable=False, comment="更新时间"
    )


__all__ = [
    "SortFieldMixin",
    "TreeNodeFieldsMixin",
]
