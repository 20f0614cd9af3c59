"""
树形节点 Schema

请求 Schema 只做基础格式校验，业务校验（父节点、循环引用、森林）由 TreeManager 完成。
"""

from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ytree.tree.types import Direction, Node, TreeNode


# ==================== 请求 Schema ====================

class NodeCreate(BaseModel):
    """创建节点请求"""
    forest: str = Field(..., min_length=1, max_length=50, description="所属森林（category / header / footer）")
    label: str = Field(..., min_length=1, max_length=200, description="名称")
    target: str = Field(..., min_length=1, max_length=500, description="链接或目标")
    parent_id: Optional[str] = Field(None, description="父节点ID，为空表示根节点")
    active: bool = Field(True, description="是否启用")
    slug: Optional[str] = Field(None, max_length=200, description="slug，为空时由名称生成")
    description: Optional[str] = Field(None, description="描述")
    icon: Optional[str] = Field(None, max_length=200, description="图标")
    image: Optional[str] = Field(None, max_length=500, description="图片")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "forest": "category",
            "label": "Smart Phones",
            "target": "/products/categories/smart-phones",
            "parent_id": None,
        }
    })


class NodeUpdate(BaseModel):
    """更新节点请求（只提交需要修改的字段）"""
    label: Optional[str] = Field(None, min_length=1, max_length=200, description="名称")
    target: Optional[str] = Field(None, min_length=1, max_length=500, description="链接或目标")
    active: Optional[bool] = Field(None, description="是否启用")
    slug: Optional[str] = Field(None, max_length=200, description="slug")
    description: Optional[str] = Field(None, description="描述")
    icon: Optional[str] = Field(None, max_length=200, description="图标")
    image: Optional[str] = Field(None, max_length=500, description="图片")


class NodeIdRequest(BaseModel):
    """按节点ID操作的请求（切换状态等）"""
    node_id: str = Field(..., min_length=1, description="节点ID")


class NodeMove(BaseModel):
    """移动节点请求"""
    node_id: str = Field(..., min_length=1, description="节点ID")
    new_parent_id: Optional[str] = Field(None, description="新父节点ID，为空表示移动为根节点")


class NodeMoveAdjacent(BaseModel):
    """同级上移/下移请求"""
    node_id: str = Field(..., min_length=1, description="节点ID")
    direction: Direction = Field(..., description="移动方向（up / down）")


class NodeMovePosition(BaseModel):
    """移动到指定位置请求"""
    node_id: str = Field(..., min_length=1, description="节点ID")
    position: int = Field(..., ge=0, description="目标位置（0 表示第一位）")


class NodeReorder(BaseModel):
    """重排同级节点请求"""
    forest: str = Field(..., min_length=1, description="所属森林")
    parent_id: Optional[str] = Field(None, description="父节点ID，为空表示根节点")
    ordered_ids: List[str] = Field(..., description="按新顺序排列的全部同级节点ID")


class NodeDelete(BaseModel):
    """删除节点请求"""
    node_id: str = Field(..., min_length=1, description="节点ID")
    cascade: Optional[bool] = Field(None, description="是否级联删除子孙节点，为空时使用配置")


# ==================== 响应 Schema ====================

class NodeResponse(BaseModel):
    """节点响应"""
    id: str = Field(..., description="节点ID")
    forest: str = Field(..., description="所属森林")
    label: str = Field(..., description="名称")
    target: str = Field(..., description="链接或目标")
    parent_id: Optional[str] = Field(None, description="父节点ID")
    order: int = Field(0, description="同级排序")
    active: bool = Field(True, description="是否启用")
    slug: Optional[str] = Field(None, description="slug")
    description: Optional[str] = Field(None, description="描述")
    icon: Optional[str] = Field(None, description="图标")
    image: Optional[str] = Field(None, description="图片")
    created_at: Optional[datetime] = Field(None, description="创建时间")
    updated_at: Optional[datetime] = Field(None, description="更新时间")

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_node(cls, node: Node) -> "NodeResponse":
        return cls.model_validate(node)

    @classmethod
    def from_nodes(cls, nodes: List[Node]) -> List["NodeResponse"]:
        return [cls.model_validate(node) for node in nodes]


class TreeNodeResponse(NodeResponse):
    """树节点响应"""
    level: int = Field(1, description="层级（根节点为1）")
    children: List["TreeNodeResponse"] = Field(default_factory=list, description="子节点")

    @classmethod
    def from_tree_node(cls, tree_node: TreeNode) -> "TreeNodeResponse":
        return cls.from_forest([tree_node])[0]

    @classmethod
    def from_forest(cls, roots: List[TreeNode]) -> List["TreeNodeResponse"]:
        # 先序展开后倒序构建，子节点总在父节点之前完成
        entries: List[Tuple[TreeNode, Optional[int]]] = []
        stack: List[Tuple[TreeNode, Optional[int]]] = [(root, None) for root in reversed(list(roots))]
        while stack:
            tree_node, parent_index = stack.pop()
            index = len(entries)
            entries.append((tree_node, parent_index))
            stack.extend((child, index) for child in reversed(tree_node.children))

        children: List[List["TreeNodeResponse"]] = [[] for _ in entries]
        result: List["TreeNodeResponse"] = []
        for index in range(len(entries) - 1, -1, -1):
            tree_node, parent_index = entries[index]
            children[index].reverse()
            response = cls(
                **NodeResponse.from_node(tree_node.node).model_dump(),
                level=tree_node.level,
                children=children[index],
            )
            (result if parent_index is None else children[parent_index]).append(response)
        result.reverse()
        return result


class DeleteResult(BaseModel):
    """删除结果"""
    deleted_ids: List[str] = Field(default_factory=list, description="被删除的节点ID")
