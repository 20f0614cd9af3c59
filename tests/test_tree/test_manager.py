"""TreeManager 测试

所有用例通过参数化的 store fixture 同时在内存存储与 ORM 存储上运行。
"""

import logging

import pytest

from ytree.config import TreeSettings
from ytree.exceptions import (
    BoundaryError,
    ErrorCode,
    ForestMismatchError,
    HasChildrenError,
    InvalidInputError,
    InvalidParentError,
    NodeNotFoundError,
    SetMismatchError,
    StorageError,
    UnknownParentError,
)
from ytree.tree import Direction, Node, TreeManager, flatten_forest


def snapshot(store, forest="category"):
    """id -> (parent_id, order)"""
    return {n.id: (n.parent_id, n.order) for n in store.list_forest(forest)}


def sibling_ids(manager, forest, parent_id=None):
    return [n.id for n in manager.list_children(forest, parent_id)]


def assert_dense(store, forest="category"):
    groups = {}
    for node in store.list_forest(forest):
        groups.setdefault(node.parent_id, []).append(node.order)
    for parent_id, orders in groups.items():
        assert sorted(orders) == list(range(len(orders))), f"parent_id={parent_id}: {orders}"


@pytest.fixture
def chain(manager):
    """A -> B -> C"""
    a = manager.create("category", "A", "/a")
    b = manager.create("category", "B", "/b", parent_id=a.id)
    c = manager.create("category", "C", "/c", parent_id=b.id)
    return a, b, c


@pytest.fixture
def xyz(manager):
    """三个同级根节点 X, Y, Z"""
    return [manager.create("header", name, f"/{name.lower()}") for name in ("X", "Y", "Z")]


class TestCreate:
    """创建节点测试"""

    def test_create_root(self, manager):
        """创建根节点"""
        node = manager.create("category", "Smart Phones", "/smart-phones")

        assert node.id
        assert node.forest == "category"
        assert node.parent_id is None
        assert node.order == 0
        assert node.active is True
        assert node.slug == "smart-phones"
        assert node.created_at is not None

    def test_append_to_end(self, manager):
        """新节点追加到同级末尾"""
        first = manager.create("category", "First", "/1")
        second = manager.create("category", "Second", "/2")

        assert (first.order, second.order) == (0, 1)
        assert sibling_ids(manager, "category") == [first.id, second.id]

    def test_create_child(self, manager):
        """创建子节点"""
        parent = manager.create("category", "Phones", "/phones")
        child = manager.create("category", "Android", "/android", parent_id=parent.id)

        assert child.parent_id == parent.id
        assert child.order == 0
        assert manager.get_level(child.id) == 2

    def test_label_and_target_are_stripped(self, manager):
        """名称与链接去除首尾空白"""
        node = manager.create("category", "  Tablets ", " /tablets ")

        assert node.label == "Tablets"
        assert node.target == "/tablets"

    def test_explicit_slug_kept(self, manager):
        """显式传入的 slug 不被覆盖"""
        node = manager.create("category", "Phones", "/phones", slug="mobile")

        assert node.slug == "mobile"

    def test_auto_slug_disabled(self, store):
        """关闭 auto_slug 时不生成 slug"""
        manager = TreeManager(store, TreeSettings(auto_slug=False))

        assert manager.create("category", "Phones", "/phones").slug is None

    def test_optional_fields(self, manager):
        """可选展示字段"""
        node = manager.create(
            "category", "Phones", "/phones",
            active=False, description="All phones", icon="phone", image="/img/phones.png",
        )

        stored = manager.get(node.id)
        assert stored.active is False
        assert stored.description == "All phones"
        assert stored.icon == "phone"
        assert stored.image == "/img/phones.png"

    @pytest.mark.parametrize("label,target", [
        ("", "/x"),
        ("   ", "/x"),
        ("X", ""),
        (None, "/x"),
    ])
    def test_empty_label_or_target(self, manager, label, target):
        """名称或链接为空"""
        with pytest.raises(InvalidInputError) as exc_info:
            manager.create("category", label, target)

        assert exc_info.value.code == ErrorCode.INVALID_INPUT
        assert manager.list_children("category") == []

    def test_label_too_long(self, manager):
        """名称超长"""
        with pytest.raises(InvalidInputError):
            manager.create("category", "x" * 201, "/x")

    def test_unknown_forest(self, manager):
        """未配置的森林"""
        with pytest.raises(InvalidInputError) as exc_info:
            manager.create("sidebar", "X", "/x")

        assert "category" in exc_info.value.details[0]

    def test_any_forest_when_list_empty(self, store):
        """forests 为空列表时接受任意森林"""
        manager = TreeManager(store, TreeSettings(forests=[]))

        assert manager.create("sidebar", "X", "/x").forest == "sidebar"

    def test_unknown_parent(self, manager):
        """父节点不存在"""
        with pytest.raises(UnknownParentError):
            manager.create("category", "X", "/x", parent_id="ghost")

    def test_cross_forest_parent(self, manager):
        """父节点属于其他森林"""
        header = manager.create("header", "Home", "/")

        with pytest.raises(ForestMismatchError):
            manager.create("category", "X", "/x", parent_id=header.id)

    def test_create_logs_info(self, manager, caplog):
        """创建写入 INFO 日志"""
        with caplog.at_level(logging.INFO, logger="ytree"):
            manager.create("category", "Phones", "/phones")

        assert "创建节点" in caplog.text


class TestUpdate:
    """更新节点测试"""

    def test_update_label_and_target(self, manager):
        """修改名称与链接"""
        node = manager.create("category", "Phones", "/phones")

        updated = manager.update(node.id, label="Mobiles", target="/mobiles")

        assert updated.label == "Mobiles"
        assert updated.target == "/mobiles"
        assert updated.slug == "phones"
        assert manager.get(node.id).label == "Mobiles"

    def test_update_without_fields(self, manager):
        """不传字段时返回原节点"""
        node = manager.create("category", "Phones", "/phones")

        assert manager.update(node.id).label == "Phones"

    def test_update_missing_node(self, manager):
        """节点不存在"""
        with pytest.raises(NodeNotFoundError) as exc_info:
            manager.update("ghost", label="X")

        assert exc_info.value.status_code == 404

    @pytest.mark.parametrize("field", ["parent_id", "order", "forest", "id"])
    def test_readonly_fields_rejected(self, manager, field):
        """结构字段不能通过 update 修改"""
        node = manager.create("category", "Phones", "/phones")

        with pytest.raises(InvalidInputError):
            manager.update(node.id, **{field: "x"})

    def test_empty_label_rejected(self, manager):
        """名称不能改为空"""
        node = manager.create("category", "Phones", "/phones")

        with pytest.raises(InvalidInputError):
            manager.update(node.id, label="  ")
        assert manager.get(node.id).label == "Phones"

    def test_active_must_be_bool(self, manager):
        node = manager.create("category", "Phones", "/phones")

        with pytest.raises(InvalidInputError):
            manager.update(node.id, active="no")


class TestToggleActive:
    """启用状态测试"""

    def test_toggle(self, manager):
        """切换两次恢复原状态"""
        node = manager.create("category", "Phones", "/phones")

        assert manager.toggle_active(node.id).active is False
        assert manager.toggle_active(node.id).active is True

    def test_children_not_affected(self, manager, chain):
        """停用父节点不影响子节点"""
        a, b, _ = chain

        manager.toggle_active(a.id)

        assert manager.get(b.id).active is True

    def test_missing(self, manager):
        with pytest.raises(NodeNotFoundError):
            manager.toggle_active("ghost")


class TestReparent:
    """移动到新父节点测试"""

    def test_cycle_rejected_and_nothing_changes(self, manager, store, chain):
        """A -> B -> C 时把 A 挂到 C 下被拒绝，数据不变"""
        a, _, c = chain
        before = snapshot(store)

        with pytest.raises(InvalidParentError):
            manager.reparent(a.id, c.id)

        assert snapshot(store) == before

    def test_self_parent_rejected(self, manager, chain):
        a, _, _ = chain

        with pytest.raises(InvalidParentError):
            manager.reparent(a.id, a.id)

    def test_move_subtree(self, manager, store, chain):
        """移动节点时整个子树随之移动"""
        a, b, c = chain
        d = manager.create("category", "D", "/d")

        moved = manager.reparent(b.id, d.id)

        assert moved.parent_id == d.id
        assert moved.order == 0
        assert manager.get(c.id).parent_id == b.id
        assert manager.get_breadcrumb(c.id) == "D > B > C"
        assert manager.list_children("category", a.id) == []
        assert_dense(store)

    def test_move_to_root_appends(self, manager, store, chain):
        """移动为根节点，追加到根节点末尾"""
        a, b, _ = chain

        moved = manager.reparent(b.id, None)

        assert moved.parent_id is None
        assert sibling_ids(manager, "category") == [a.id, b.id]
        assert moved.order == 1

    def test_old_group_renumbered(self, manager, store):
        """原同级重新编号为连续序号"""
        parent = manager.create("category", "P", "/p")
        kids = [manager.create("category", f"K{i}", f"/k{i}", parent_id=parent.id) for i in range(3)]
        other = manager.create("category", "O", "/o")

        manager.reparent(kids[0].id, other.id)

        assert [n.order for n in manager.list_children("category", parent.id)] == [0, 1]
        assert_dense(store)

    def test_same_parent_is_noop(self, manager, store, chain):
        """父节点不变时不做修改"""
        _, b, _ = chain
        before = snapshot(store)

        node = manager.reparent(b.id, b.parent_id)

        assert node.id == b.id
        assert snapshot(store) == before

    def test_unknown_parent(self, manager, chain):
        _, b, _ = chain

        with pytest.raises(UnknownParentError):
            manager.reparent(b.id, "ghost")

    def test_cross_forest_parent(self, manager, chain):
        """不能移动到其他森林的节点下"""
        _, b, _ = chain
        home = manager.create("header", "Home", "/")

        with pytest.raises(ForestMismatchError):
            manager.reparent(b.id, home.id)

    def test_missing_node(self, manager):
        with pytest.raises(NodeNotFoundError):
            manager.reparent("ghost", None)


class TestMoveAdjacent:
    """同级上移/下移测试"""

    def test_boundary_then_move_down(self, manager, store, xyz):
        """X 不能上移；X 下移后顺序为 Y, X, Z"""
        x, y, z = xyz
        before = snapshot(store, "header")

        with pytest.raises(BoundaryError):
            manager.move_adjacent(x.id, Direction.UP)
        assert snapshot(store, "header") == before

        manager.move_adjacent(x.id, Direction.DOWN)

        orders = {n.id: n.order for n in manager.list_children("header")}
        assert orders == {y.id: 0, x.id: 1, z.id: 2}

    def test_last_cannot_move_down(self, manager, xyz):
        with pytest.raises(BoundaryError) as exc_info:
            manager.move_down(xyz[-1].id)

        assert exc_info.value.direction == "down"
        assert exc_info.value.status_code == 400

    def test_move_up_shortcut(self, manager, xyz):
        x, y, z = xyz

        manager.move_up(z.id)

        assert sibling_ids(manager, "header") == [x.id, z.id, y.id]

    def test_siblings_only(self, manager, chain):
        """只在同级中移动，单个子节点两边都是边界"""
        _, b, _ = chain

        with pytest.raises(BoundaryError):
            manager.move_up(b.id)
        with pytest.raises(BoundaryError):
            manager.move_down(b.id)

    def test_missing(self, manager):
        with pytest.raises(NodeNotFoundError):
            manager.move_adjacent("ghost", "up")


class TestReassignOrder:
    """重排同级测试"""

    def test_reorder(self, manager, xyz):
        """按提交顺序重排"""
        x, y, z = xyz

        manager.reassign_order("header", None, [z.id, x.id, y.id])

        assert sibling_ids(manager, "header") == [z.id, x.id, y.id]
        assert [n.order for n in manager.list_children("header")] == [0, 1, 2]

    def test_missing_sibling_rejected(self, manager, store, xyz):
        """缺少同级节点时拒绝，排序不变"""
        x, y, _ = xyz
        before = snapshot(store, "header")

        with pytest.raises(SetMismatchError) as exc_info:
            manager.reassign_order("header", None, [y.id, x.id])

        assert exc_info.value.missing == [xyz[2].id]
        assert snapshot(store, "header") == before

    def test_foreign_id_rejected(self, manager, store, xyz, chain):
        """包含其他分组的节点时拒绝"""
        x, y, z = xyz
        before = snapshot(store, "header")

        with pytest.raises(SetMismatchError) as exc_info:
            manager.reassign_order("header", None, [x.id, y.id, z.id, chain[0].id])

        assert exc_info.value.unexpected == [chain[0].id]
        assert snapshot(store, "header") == before

    def test_child_group(self, manager):
        parent = manager.create("category", "P", "/p")
        a = manager.create("category", "A", "/a", parent_id=parent.id)
        b = manager.create("category", "B", "/b", parent_id=parent.id)

        manager.reassign_order("category", parent.id, [b.id, a.id])

        assert sibling_ids(manager, "category", parent.id) == [b.id, a.id]

    @pytest.mark.parametrize("ordered_ids", [None, "abc"])
    def test_ordered_ids_must_be_list(self, manager, ordered_ids):
        with pytest.raises(InvalidInputError):
            manager.reassign_order("header", None, ordered_ids)

    def test_unknown_parent(self, manager):
        with pytest.raises(UnknownParentError):
            manager.reassign_order("header", "ghost", [])


class TestMoveToPosition:
    """移动到指定位置测试"""

    def test_move_to_front(self, manager, xyz):
        x, y, z = xyz

        node = manager.move_to_position(z.id, 0)

        assert node.order == 0
        assert sibling_ids(manager, "header") == [z.id, x.id, y.id]

    def test_position_clamped(self, manager, xyz):
        x, y, z = xyz

        node = manager.move_to_position(x.id, 10)

        assert node.order == 2
        assert sibling_ids(manager, "header") == [y.id, z.id, x.id]

    @pytest.mark.parametrize("position", ["1", 1.5, True])
    def test_position_must_be_int(self, manager, xyz, position):
        with pytest.raises(InvalidInputError):
            manager.move_to_position(xyz[0].id, position)


class TestDelete:
    """删除节点测试"""

    def test_delete_leaf(self, manager, store, xyz):
        """删除叶子节点，同级重新编号"""
        x, y, z = xyz

        deleted = manager.delete(x.id)

        assert deleted == [x.id]
        assert sibling_ids(manager, "header") == [y.id, z.id]
        assert_dense(store, "header")
        with pytest.raises(NodeNotFoundError):
            manager.get(x.id)

    def test_blocked_by_children(self, manager, store, chain):
        """存在子节点且未级联时拒绝删除"""
        a, _, _ = chain
        before = snapshot(store)

        with pytest.raises(HasChildrenError) as exc_info:
            manager.delete(a.id)

        assert exc_info.value.children_count == 1
        assert exc_info.value.status_code == 409
        assert snapshot(store) == before

    def test_cascade(self, manager, store, chain):
        """A -> B -> C 级联删除 B 时删除 B 和 C，A 无子节点"""
        a, b, c = chain
        other = manager.create("category", "Other", "/other")

        deleted = manager.delete(b.id, cascade=True)

        assert deleted == [c.id, b.id]
        assert manager.list_children("category", a.id) == []
        assert sibling_ids(manager, "category") == [a.id, other.id]
        assert_dense(store)
        assert set(snapshot(store)) == {a.id, other.id}

    def test_cascade_default_from_settings(self, store):
        """未传 cascade 时使用配置"""
        manager = TreeManager(store, TreeSettings(cascade_delete=True))
        parent = manager.create("category", "P", "/p")
        manager.create("category", "K", "/k", parent_id=parent.id)

        assert len(manager.delete(parent.id)) == 2

    def test_cascade_wide_subtree(self, manager, store):
        """子孙节点在父节点之前删除"""
        root = manager.create("category", "R", "/r")
        kids = [manager.create("category", f"K{i}", f"/k{i}", parent_id=root.id) for i in range(2)]
        grandkid = manager.create("category", "G", "/g", parent_id=kids[0].id)

        deleted = manager.delete(root.id, cascade=True)

        assert deleted[-1] == root.id
        assert deleted.index(grandkid.id) < deleted.index(kids[0].id)
        assert snapshot(store) == {}

    def test_missing(self, manager):
        with pytest.raises(NodeNotFoundError):
            manager.delete("ghost")


class TestQueries:
    """查询测试"""

    def test_get_forest(self, manager, chain):
        """获取嵌套树"""
        a, b, c = chain

        roots = manager.get_forest("category")

        assert [r.id for r in roots] == [a.id]
        assert roots[0].children[0].id == b.id
        assert roots[0].children[0].children[0].level == 3

    def test_forests_are_isolated(self, manager, chain, xyz):
        """不同森林互不影响"""
        assert len(manager.get_forest("category")) == 1
        assert len(manager.get_forest("header")) == 3
        assert manager.get_forest("footer") == []

    def test_inactive_subtree_hidden(self, manager, chain):
        """不含停用节点时，停用节点的子树一起隐藏"""
        a, b, _ = chain
        manager.toggle_active(b.id)

        roots = manager.get_forest("category", include_inactive=False)

        assert [n.id for n in flatten_forest(roots)] == [a.id]

    def test_list_children_active_only(self, manager, xyz):
        x, y, z = xyz
        manager.toggle_active(y.id)

        assert [n.id for n in manager.list_children("header", include_inactive=False)] == [x.id, z.id]

    def test_ancestors_and_descendants(self, manager, chain):
        a, b, c = chain

        assert [n.id for n in manager.get_ancestors(c.id)] == [a.id, b.id]
        assert [n.id for n in manager.get_descendants(a.id)] == [b.id, c.id]
        assert manager.get_ancestors(a.id) == []

    def test_breadcrumb_and_level(self, manager, chain):
        _, _, c = chain

        assert manager.get_breadcrumb(c.id) == "A > B > C"
        assert manager.get_breadcrumb(c.id, separator="/") == "A/B/C"
        assert manager.get_level(c.id) == 3

    def test_get_missing(self, manager):
        with pytest.raises(NodeNotFoundError):
            manager.get("ghost")


class TestIntegrity:
    """完整性检查与修复测试"""

    def seed(self, store, nodes):
        with store.transaction():
            for node in nodes:
                store.insert(node)

    def test_clean_forest(self, manager, chain):
        assert manager.check_integrity("category") == []

    def test_order_gap_and_repair(self, manager, store):
        """检测并修复不连续的排序"""
        self.seed(store, [
            Node(forest="header", label="A", target="/a", id="a", order=3),
            Node(forest="header", label="B", target="/b", id="b", order=7),
        ])

        warnings = manager.check_integrity("header")
        assert [w.kind for w in warnings] == ["order_gap"]

        assert manager.repair_order("header") == 2
        assert manager.check_integrity("header") == []
        assert sibling_ids(manager, "header") == ["a", "b"]
        assert manager.repair_order("header") == 0

    def test_cross_forest_parent_reported(self, manager, store):
        """父节点属于其他森林"""
        self.seed(store, [
            Node(forest="header", label="H", target="/h", id="h"),
            Node(forest="category", label="C", target="/c", id="c", parent_id="h"),
        ])

        kinds = [w.kind for w in manager.check_integrity("category")]

        assert kinds == ["forest_mismatch"]

    def test_create_renumbers_gapped_group(self, manager, store):
        """新建节点前先规整同级，保证追加到连续序号末尾"""
        self.seed(store, [
            Node(forest="header", label="A", target="/a", id="a", order=5),
        ])

        node = manager.create("header", "B", "/b")

        assert node.order == 1
        assert_dense(store, "header")


class TestAtomicity:
    """事务回滚测试"""

    def test_storage_error_rolls_back(self, manager, store, monkeypatch):
        """写入中途失败时已执行的写入全部回滚"""
        with store.transaction():
            store.insert(Node(forest="header", label="A", target="/a", id="a", order=4))
        before = snapshot(store, "header")

        def broken_insert(node):
            raise StorageError("写入失败")

        monkeypatch.setattr(store, "insert", broken_insert)

        with pytest.raises(StorageError):
            manager.create("header", "B", "/b")

        assert snapshot(store, "header") == before
