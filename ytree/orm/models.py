"""节点模型定义"""

from typing import Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

from .fields import TreeNodeFieldsMixin


# 声明基类
Base = declarative_base()


class TreeNodeModel(Base, TreeNodeFieldsMixin):
    """默认的节点表

    分类与导航共用一张表，按 forest 字段区分。
    需要独立表时，参照此类用 TreeNodeFieldsMixin 声明新模型，
    并通过 ORMNodeStore(model=...) 传入。
    """
    __tablename__ = "tree_node"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, comment="节点ID")
    parent_id: Mapped[Optional[str]] = mapped_column(
        String(32),
        ForeignKey("tree_node.id"),
        nullable=True,
        index=True,
        comment="父节点ID，为空表示根节点"
    )

    def __repr__(self) -> str:
        return f"<TreeNodeModel(id={self.id!r}, forest={self.forest!r}, label={self.label!r})>"


class ForestLockModel(Base):
    """森林锚点表

    每个森林一行，由 ORMNodeStore 在首次写入根节点分组时创建。
    根节点没有父节点行可锁，向根分组写入前改为锁住这一行。
    """
    __tablename__ = "tree_forest_lock"

    forest: Mapped[str] = mapped_column(String(50), primary_key=True, comment="森林名称")

    def __repr__(self) -> str:
        return f"<ForestLockModel(forest={self.forest!r})>"
