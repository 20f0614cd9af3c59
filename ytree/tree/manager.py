"""
树形节点管理服务

提供分类与导航等森林的增删改查、移动、排序操作。

设计原则：
- 所有变更在 store.transaction() 中完成，任何异常都会整体回滚
- 校验在写入之前完成
- 每次操作重新读取所需数据，不缓存树
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Union

from ytree.config import TreeSettings
from ytree.exceptions import (
    ForestMismatchError,
    HasChildrenError,
    InvalidInputError,
    NodeNotFoundError,
    UnknownParentError,
)
from ytree.log import get_logger
from ytree.utils import slugify

from . import ordering
from .cycle_checker import (
    build_children_map,
    collect_descendants,
    compute_level,
    iter_ancestors,
    validate_parent,
)
from .tree_builder import build_forest, filter_forest
from .types import (
    EDITABLE_FIELDS,
    Direction,
    ForestBuildResult,
    IntegrityWarning,
    Node,
    TreeNode,
)

if TYPE_CHECKING:
    from ytree.store.base import BaseNodeStore

logger = get_logger()


class TreeManager:
    """树形节点管理器

    使用示例:
        from ytree import TreeManager, MemoryNodeStore, Direction

        manager = TreeManager(MemoryNodeStore())

        phones = manager.create("category", "Phones", "phones")
        android = manager.create("category", "Android", "android", parent_id=phones.id)

        manager.move_adjacent(android.id, Direction.UP)
        manager.delete(phones.id, cascade=True)

        for root in manager.get_forest("category", include_inactive=False):
            print(root.node.label)
    """

    def __init__(self, store: "BaseNodeStore", settings: TreeSettings = None):
        """初始化管理器

        Args:
            store: 节点存储
            settings: 树形配置，不传时使用默认配置（环境变量 YTREE_TREE_* 生效）
        """
        self.store = store
        self.settings = settings or TreeSettings()

    # ==================== 校验 ====================

    def _check_forest(self, forest: str) -> str:
        if not isinstance(forest, str) or not forest.strip():
            raise InvalidInputError("森林名称不能为空")
        allowed = self.settings.forests
        if allowed and forest not in allowed:
            raise InvalidInputError(
                f"未知的森林: {forest}",
                details=[f"可用的森林: {', '.join(allowed)}"],
            )
        return forest

    def _check_text(self, value: Any, field_name: str, max_length: int) -> str:
        if not isinstance(value, str) or not value.strip():
            raise InvalidInputError(f"{field_name} 不能为空")
        value = value.strip()
        if len(value) > max_length:
            raise InvalidInputError(f"{field_name} 长度不能超过 {max_length}")
        return value

    def _check_label(self, label: Any) -> str:
        return self._check_text(label, "label", self.settings.label_max_length)

    def _check_target(self, target: Any) -> str:
        return self._check_text(target, "target", self.settings.target_max_length)

    def _require(self, node_id: str) -> Node:
        node = self.store.get_by_id(node_id) if node_id is not None else None
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def _require_parent(self, forest: str, parent_id: Optional[str]) -> Optional[Node]:
        """校验父节点存在且属于同一森林（不做循环检查）"""
        if parent_id is None:
            return None
        parent = self.store.get_by_id(parent_id)
        if parent is None:
            raise UnknownParentError(parent_id)
        if parent.forest != forest:
            raise ForestMismatchError(forest, parent.forest)
        return parent

    # ==================== 内部排序工具 ====================

    def _apply_orders(self, before: Sequence[Node], after: Sequence[Node]) -> int:
        changes = ordering.changed_orders(before, after)
        for node_id, order in changes.items():
            self.store.update_fields(node_id, order=order)
        return len(changes)

    def _normalize_group(
        self,
        forest: str,
        parent_id: Optional[str],
        exclude: Optional[str] = None,
    ) -> List[Node]:
        """规整一组同级节点并写回，返回规整后的列表"""
        siblings = self.store.list_by_parent(forest, parent_id, for_update=True)
        if exclude is not None:
            siblings = [node for node in siblings if node.id != exclude]
        normalized = ordering.normalize(siblings)
        self._apply_orders(siblings, normalized)
        return normalized

    # ==================== 创建与编辑 ====================

    def create(
        self,
        forest: str,
        label: str,
        target: str,
        parent_id: Optional[str] = None,
        *,
        active: bool = True,
        slug: Optional[str] = None,
        description: Optional[str] = None,
        icon: Optional[str] = None,
        image: Optional[str] = None,
    ) -> Node:
        """创建节点，追加到同级末尾

        Args:
            forest: 所属森林
            label: 名称
            target: 链接或目标
            parent_id: 父节点 ID，为空表示根节点
            active: 是否启用
            slug: 为空且开启 auto_slug 时由 label 自动生成

        Raises:
            InvalidInputError: label/target 为空或森林未知
            UnknownParentError: 父节点不存在
            ForestMismatchError: 父节点属于其他森林
        """
        self._check_forest(forest)
        label = self._check_label(label)
        target = self._check_target(target)
        if slug is None and self.settings.auto_slug:
            slug = slugify(label) or None

        with self.store.transaction():
            self._require_parent(forest, parent_id)
            siblings = self._normalize_group(forest, parent_id)
            node = self.store.insert(Node(
                forest=forest,
                label=label,
                target=target,
                parent_id=parent_id,
                order=len(siblings),
                active=bool(active),
                slug=slug,
                description=description,
                icon=icon,
                image=image,
            ))

        logger.info(f"创建节点: forest={forest}, id={node.id}, label={label}, parent_id={parent_id}")
        return node

    def update(self, node_id: str, **fields: Any) -> Node:
        """修改节点的可编辑字段（label, target, active, slug, description, icon, image）

        父节点与排序需要通过 reparent / move_* / reassign_order 修改。

        Raises:
            NodeNotFoundError: 节点不存在
            InvalidInputError: 字段值无效，或试图修改 id / forest / parent_id / order
        """
        readonly = sorted(set(fields) - EDITABLE_FIELDS)
        if readonly:
            raise InvalidInputError(
                f"以下字段不能通过 update 修改: {', '.join(readonly)}",
                details=["父节点请使用 reparent，排序请使用 move_adjacent / reassign_order"],
            )
        if "label" in fields:
            fields["label"] = self._check_label(fields["label"])
        if "target" in fields:
            fields["target"] = self._check_target(fields["target"])
        if "active" in fields and not isinstance(fields["active"], bool):
            raise InvalidInputError("active 必须是布尔值")

        with self.store.transaction():
            self._require(node_id)
            if not fields:
                return self._require(node_id)
            node = self.store.update_fields(node_id, **fields)

        logger.info(f"更新节点: id={node_id}, fields={sorted(fields)}")
        return node

    def toggle_active(self, node_id: str) -> Node:
        """切换启用状态，不影响子节点

        Raises:
            NodeNotFoundError: 节点不存在
        """
        with self.store.transaction():
            node = self._require(node_id)
            node = self.store.update_fields(node_id, active=not node.active)

        logger.info(f"切换节点状态: id={node_id}, active={node.active}")
        return node

    # ==================== 移动与排序 ====================

    def reparent(self, node_id: str, new_parent_id: Optional[str] = None) -> Node:
        """移动到新的父节点下，追加到新同级的末尾

        新父节点与当前父节点相同时不做任何修改。

        Raises:
            NodeNotFoundError: 节点不存在
            UnknownParentError: 新父节点不存在
            ForestMismatchError: 新父节点属于其他森林
            InvalidParentError: 新父节点是节点自身或其子孙
        """
        with self.store.transaction():
            node = self._require(node_id)
            if node.parent_id == new_parent_id:
                return node

            nodes = {n.id: n for n in self.store.list_forest(node.forest)}
            if new_parent_id is not None and new_parent_id not in nodes:
                outside = self.store.get_by_id(new_parent_id)
                if outside is not None:
                    nodes[outside.id] = outside
            validate_parent(nodes, node, new_parent_id)

            old_parent_id = node.parent_id
            self._normalize_group(node.forest, old_parent_id, exclude=node_id)
            new_siblings = self._normalize_group(node.forest, new_parent_id)
            node = self.store.update_fields(node_id, parent_id=new_parent_id, order=len(new_siblings))

        logger.info(f"移动节点: id={node_id}, {old_parent_id} -> {new_parent_id}")
        return node

    def move_adjacent(self, node_id: str, direction: Union[Direction, str]) -> None:
        """与相邻的同级节点交换位置

        Raises:
            NodeNotFoundError: 节点不存在
            BoundaryError: 已在最前（上移）或最后（下移）
        """
        with self.store.transaction():
            node = self._require(node_id)
            siblings = self._normalize_group(node.forest, node.parent_id)
            moved = ordering.move_adjacent(siblings, node_id, direction)
            self._apply_orders(siblings, moved)

        logger.info(f"同级移动: id={node_id}, direction={Direction(direction).value}")

    def move_up(self, node_id: str) -> None:
        """上移一位"""
        self.move_adjacent(node_id, Direction.UP)

    def move_down(self, node_id: str) -> None:
        """下移一位"""
        self.move_adjacent(node_id, Direction.DOWN)

    def reassign_order(
        self,
        forest: str,
        parent_id: Optional[str],
        ordered_ids: Sequence[str],
    ) -> None:
        """按给定顺序重排一组同级节点（拖拽排序提交）

        Raises:
            InvalidInputError: 森林未知或 ordered_ids 不是列表
            UnknownParentError: 父节点不存在
            ForestMismatchError: 父节点属于其他森林
            SetMismatchError: ordered_ids 不是当前同级节点的一个排列
        """
        self._check_forest(forest)
        if ordered_ids is None or isinstance(ordered_ids, (str, bytes)):
            raise InvalidInputError("ordered_ids 必须是节点 ID 列表")
        ordered_ids = list(ordered_ids)

        with self.store.transaction():
            self._require_parent(forest, parent_id)
            siblings = self.store.list_by_parent(forest, parent_id, for_update=True)
            reordered = ordering.reassign(siblings, ordered_ids)
            changed = self._apply_orders(siblings, reordered)

        logger.info(f"重排同级节点: forest={forest}, parent_id={parent_id}, changed={changed}")

    def move_to_position(self, node_id: str, position: int) -> Node:
        """移动到同级中的指定位置（0 表示第一位，超出范围取边界）

        Raises:
            NodeNotFoundError: 节点不存在
            InvalidInputError: position 不是整数
        """
        if isinstance(position, bool) or not isinstance(position, int):
            raise InvalidInputError("position 必须是整数")

        with self.store.transaction():
            node = self._require(node_id)
            siblings = self.store.list_by_parent(node.forest, node.parent_id, for_update=True)
            moved = ordering.move_to_position(siblings, node_id, position)
            self._apply_orders(siblings, moved)
            node = self._require(node_id)

        logger.info(f"移动到指定位置: id={node_id}, position={node.order}")
        return node

    # ==================== 删除 ====================

    def delete(self, node_id: str, cascade: Optional[bool] = None) -> List[str]:
        """删除节点

        Args:
            node_id: 节点 ID
            cascade: 是否级联删除子孙节点，None 时使用配置 tree.cascade_delete

        Returns:
            被删除的节点 ID（子孙在前，自身最后）

        Raises:
            NodeNotFoundError: 节点不存在
            HasChildrenError: 存在子节点且未级联
        """
        if cascade is None:
            cascade = self.settings.cascade_delete

        with self.store.transaction():
            node = self._require(node_id)
            children = self.store.list_by_parent(node.forest, node_id)
            if children and not cascade:
                raise HasChildrenError(node_id, len(children))

            deleted: List[str] = []
            if children:
                nodes = {n.id: n for n in self.store.list_forest(node.forest)}
                descendants = collect_descendants(build_children_map(nodes), node_id)
                # 广度优先结果倒序删除，子节点总在父节点之前
                for descendant_id in reversed(descendants):
                    self.store.delete_by_id(descendant_id)
                    deleted.append(descendant_id)

            self.store.delete_by_id(node_id)
            deleted.append(node_id)
            self._normalize_group(node.forest, node.parent_id)

        logger.info(f"删除节点: id={node_id}, cascade={cascade}, count={len(deleted)}")
        return deleted

    # ==================== 查询 ====================

    def get(self, node_id: str) -> Node:
        """获取节点

        Raises:
            NodeNotFoundError: 节点不存在
        """
        return self._require(node_id)

    def list_children(
        self,
        forest: str,
        parent_id: Optional[str] = None,
        include_inactive: bool = True,
    ) -> List[Node]:
        """获取直接子节点，按 order 升序"""
        self._check_forest(forest)
        self._require_parent(forest, parent_id)
        children = self.store.list_by_parent(forest, parent_id)
        if not include_inactive:
            children = [node for node in children if node.active]
        return children

    def build_forest_view(self, forest: str, include_inactive: bool = True) -> ForestBuildResult:
        """构建森林视图（含完整性告警）

        include_inactive=False 时，停用节点连同其子树一起隐藏。
        """
        self._check_forest(forest)
        result = build_forest(self.store.list_forest(forest))
        if include_inactive:
            return result
        return ForestBuildResult(
            roots=filter_forest(result.roots, lambda n: n.active),
            warnings=result.warnings,
        )

    def get_forest(self, forest: str, include_inactive: bool = True) -> List[TreeNode]:
        """获取森林的嵌套树（根节点列表）"""
        return self.build_forest_view(forest, include_inactive).roots

    def _forest_nodes(self, node_id: str) -> Dict[str, Node]:
        node = self._require(node_id)
        return {n.id: n for n in self.store.list_forest(node.forest)}

    def get_ancestors(self, node_id: str) -> List[Node]:
        """获取祖先节点，从根节点开始排序"""
        nodes = self._forest_nodes(node_id)
        return list(reversed(list(iter_ancestors(nodes, node_id))))

    def get_descendants(self, node_id: str) -> List[Node]:
        """获取全部子孙节点（广度优先，父节点在子节点之前）"""
        nodes = self._forest_nodes(node_id)
        children_map = build_children_map(nodes)
        return [nodes[child_id] for child_id in collect_descendants(children_map, node_id)]

    def get_breadcrumb(self, node_id: str, separator: str = " > ") -> str:
        """获取面包屑，如 "Phones > Android > Samsung" """
        nodes = self._forest_nodes(node_id)
        path = list(reversed(list(iter_ancestors(nodes, node_id)))) + [nodes[node_id]]
        return separator.join(node.label for node in path)

    def get_level(self, node_id: str) -> int:
        """获取节点层级，根节点为 1"""
        return compute_level(self._forest_nodes(node_id), node_id)

    # ==================== 完整性维护 ====================

    def check_integrity(self, forest: str) -> List[IntegrityWarning]:
        """检查森林的数据完整性

        检查项：孤儿节点、循环引用、重复 ID、跨森林父节点、同级排序不连续。
        只报告，不修改数据。
        """
        self._check_forest(forest)
        nodes = self.store.list_forest(forest)
        warnings: List[IntegrityWarning] = []

        for warning in build_forest(nodes).warnings:
            if warning.kind == "orphan":
                parent = self.store.get_by_id(warning.parent_id)
                if parent is not None:
                    warning = IntegrityWarning(
                        kind="forest_mismatch",
                        node_id=warning.node_id,
                        parent_id=warning.parent_id,
                        message=f"节点 {warning.node_id} 的父节点属于其他森林: {parent.forest}",
                    )
            warnings.append(warning)

        groups: Dict[Optional[str], List[Node]] = {}
        for node in nodes:
            groups.setdefault(node.parent_id, []).append(node)
        for parent_id, siblings in groups.items():
            if not ordering.is_dense(siblings):
                warnings.append(IntegrityWarning(
                    kind="order_gap",
                    node_id=None,
                    parent_id=parent_id,
                    message=f"同级排序不连续: parent_id={parent_id}, "
                            f"orders={sorted(n.order for n in siblings)}",
                ))

        for warning in warnings:
            logger.warning(f"完整性检查 [{forest}] {warning.kind}: {warning.message}")
        return warnings

    def repair_order(self, forest: str) -> int:
        """规整森林中每一组同级节点的排序

        Returns:
            order 被修改的节点数量
        """
        self._check_forest(forest)
        with self.store.transaction():
            groups: Dict[Optional[str], List[Node]] = {}
            for node in self.store.list_forest(forest):
                groups.setdefault(node.parent_id, []).append(node)
            changed = sum(
                self._apply_orders(siblings, ordering.normalize(siblings))
                for siblings in groups.values()
            )

        if changed:
            logger.info(f"修复排序: forest={forest}, changed={changed}")
        return changed
