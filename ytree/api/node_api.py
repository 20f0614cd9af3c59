"""
树形节点 API

提供节点的增删改查、移动与排序接口。
使用动词风格路由，只使用 GET 和 POST 请求。

- API 层只负责：参数验证、DTO 转换、调用 TreeManager
- 业务异常（BusinessException 子类）由全局异常处理器转换为统一响应
"""

from typing import Optional, TYPE_CHECKING

from fastapi import APIRouter, Query

from ytree.exceptions import InvalidInputError
from ytree.response import Resp, OkResponse

from ..schemas.node import (
    DeleteResult,
    NodeCreate,
    NodeDelete,
    NodeIdRequest,
    NodeMove,
    NodeMoveAdjacent,
    NodeMovePosition,
    NodeReorder,
    NodeResponse,
    NodeUpdate,
    TreeNodeResponse,
)

if TYPE_CHECKING:
    from ytree.tree import TreeManager


def create_tree_router(
    manager: "TreeManager",
    forest: Optional[str] = None,
) -> APIRouter:
    """创建树形节点路由

    Args:
        manager: TreeManager 实例
        forest: 默认森林。设置后查询接口的 forest 参数可省略，
            用于为分类、导航分别挂载独立路由

    Returns:
        APIRouter

    生成的路由:
        GET  /list           - 获取直接子节点（平铺）
        GET  /tree           - 获取森林树
        GET  /get            - 获取节点详情
        GET  /breadcrumb     - 获取节点面包屑与祖先
        POST /create         - 创建节点
        POST /update         - 更新节点
        POST /toggle-active  - 切换启用状态
        POST /move           - 移动到新父节点
        POST /move-adjacent  - 同级上移/下移
        POST /move-position  - 移动到同级指定位置
        POST /reorder        - 重排同级节点
        POST /delete         - 删除节点

    使用示例:
        app.include_router(create_tree_router(manager), prefix="/api/tree")
        app.include_router(
            create_tree_router(manager, forest="category"),
            prefix="/api/categories",
        )
    """
    router = APIRouter()

    def _resolve_forest(value: Optional[str]) -> str:
        resolved = value or forest
        if not resolved:
            raise InvalidInputError("缺少 forest 参数")
        return resolved

    # ==================== 查询接口 ====================

    @router.get(
        "/list",
        response_model=OkResponse,
        summary="获取子节点列表",
        description="获取指定父节点下的直接子节点（按排序升序）"
    )
    async def list_nodes(
        forest_name: Optional[str] = Query(None, alias="forest", description="森林名称"),
        parent_id: Optional[str] = Query(None, description="父节点ID，为空表示根节点"),
        include_inactive: bool = Query(True, description="是否包含停用节点"),
    ):
        """获取子节点列表"""
        nodes = manager.list_children(_resolve_forest(forest_name), parent_id, include_inactive)
        return Resp.OK(data=NodeResponse.from_nodes(nodes))

    @router.get(
        "/tree",
        response_model=OkResponse,
        summary="获取森林树",
        description="获取森林的嵌套树形结构；不含停用节点时，停用节点的子树一起隐藏"
    )
    async def get_tree(
        forest_name: Optional[str] = Query(None, alias="forest", description="森林名称"),
        include_inactive: bool = Query(True, description="是否包含停用节点"),
    ):
        """获取森林树"""
        roots = manager.get_forest(_resolve_forest(forest_name), include_inactive)
        return Resp.OK(data=TreeNodeResponse.from_forest(roots))

    @router.get(
        "/get",
        response_model=OkResponse,
        summary="获取节点详情",
        description="根据节点ID获取详情"
    )
    async def get_node(
        node_id: str = Query(..., description="节点ID"),
    ):
        """获取节点详情"""
        return Resp.OK(data=NodeResponse.from_node(manager.get(node_id)))

    @router.get(
        "/breadcrumb",
        response_model=OkResponse,
        summary="获取面包屑",
        description="获取从根节点到当前节点的路径"
    )
    async def get_breadcrumb(
        node_id: str = Query(..., description="节点ID"),
        separator: str = Query(" > ", description="分隔符"),
    ):
        """获取面包屑"""
        return Resp.OK(data={
            "breadcrumb": manager.get_breadcrumb(node_id, separator),
            "level": manager.get_level(node_id),
            "ancestors": NodeResponse.from_nodes(manager.get_ancestors(node_id)),
        })

    # ==================== 写入接口 ====================

    @router.post(
        "/create",
        response_model=OkResponse,
        summary="创建节点",
        description="在指定父节点下创建节点，追加到同级末尾"
    )
    async def create_node(data: NodeCreate):
        """创建节点"""
        node = manager.create(
            forest=data.forest,
            label=data.label,
            target=data.target,
            parent_id=data.parent_id,
            active=data.active,
            slug=data.slug,
            description=data.description,
            icon=data.icon,
            image=data.image,
        )
        return Resp.OK(data=NodeResponse.from_node(node), message="创建成功")

    @router.post(
        "/update",
        response_model=OkResponse,
        summary="更新节点",
        description="更新节点的名称、链接、状态等字段"
    )
    async def update_node(
        data: NodeUpdate,
        node_id: str = Query(..., description="节点ID"),
    ):
        """更新节点"""
        update_data = data.model_dump(exclude_unset=True)
        node = manager.update(node_id, **update_data)
        return Resp.OK(data=NodeResponse.from_node(node), message="更新成功")

    @router.post(
        "/toggle-active",
        response_model=OkResponse,
        summary="切换启用状态",
        description="切换节点的启用/停用状态，不影响子节点"
    )
    async def toggle_active(data: NodeIdRequest):
        """切换启用状态"""
        node = manager.toggle_active(data.node_id)
        return Resp.OK(data=NodeResponse.from_node(node), message="状态已更新")

    @router.post(
        "/move",
        response_model=OkResponse,
        summary="移动节点",
        description="将节点移动到新的父节点下（不能移动到自身或子孙节点下）"
    )
    async def move_node(data: NodeMove):
        """移动节点"""
        node = manager.reparent(data.node_id, data.new_parent_id)
        return Resp.OK(data=NodeResponse.from_node(node), message="移动成功")

    @router.post(
        "/move-adjacent",
        response_model=OkResponse,
        summary="同级上移/下移",
        description="与相邻的同级节点交换位置"
    )
    async def move_adjacent(data: NodeMoveAdjacent):
        """同级上移/下移"""
        manager.move_adjacent(data.node_id, data.direction)
        return Resp.OK(data=NodeResponse.from_node(manager.get(data.node_id)), message="移动成功")

    @router.post(
        "/move-position",
        response_model=OkResponse,
        summary="移动到指定位置",
        description="移动到同级中的指定位置（0 表示第一位）"
    )
    async def move_position(data: NodeMovePosition):
        """移动到指定位置"""
        node = manager.move_to_position(data.node_id, data.position)
        return Resp.OK(data=NodeResponse.from_node(node), message="移动成功")

    @router.post(
        "/reorder",
        response_model=OkResponse,
        summary="重排同级节点",
        description="按提交的ID顺序重排一组同级节点，ID 列表必须恰好包含全部同级节点"
    )
    async def reorder_nodes(data: NodeReorder):
        """重排同级节点"""
        manager.reassign_order(data.forest, data.parent_id, data.ordered_ids)
        nodes = manager.list_children(data.forest, data.parent_id)
        return Resp.OK(data=NodeResponse.from_nodes(nodes), message="排序成功")

    @router.post(
        "/delete",
        response_model=OkResponse,
        summary="删除节点",
        description="删除节点；存在子节点时需要级联删除"
    )
    async def delete_node(data: NodeDelete):
        """删除节点"""
        deleted = manager.delete(data.node_id, cascade=data.cascade)
        return Resp.OK(data=DeleteResult(deleted_ids=deleted), message="删除成功")

    return router
