"""树形不变量的属性测试

使用 hypothesis 生成随机操作序列，验证：
- 任何合法的移动序列之后都不存在循环
- 任何增删移排序列之后每组同级节点的 order 都是 0..n-1
- 森林展平后与存储中的节点集合一致，子节点按 order 升序
- 对已规整的同级重复规整结果不变
"""

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ytree.config import TreeSettings
from ytree.exceptions import TreeError
from ytree.orm import Base
from ytree.store import MemoryNodeStore, ORMNodeStore
from ytree.tree import Node, TreeManager, build_forest, flatten_forest, normalize

FOREST = "category"

# (操作, 第一个节点下标, 第二个节点下标)
operations = st.lists(
    st.tuples(
        st.sampled_from(["create", "reparent", "root", "delete", "reorder", "up", "down"]),
        st.integers(min_value=0, max_value=30),
        st.integers(min_value=0, max_value=30),
    ),
    max_size=40,
)


def new_manager(store):
    return TreeManager(store, TreeSettings(forests=[FOREST], cascade_delete=False))


def pick(ids, index):
    return ids[index % len(ids)] if ids else None


def apply(manager, op, i, j):
    """执行一个操作，被拒绝的操作（TreeError）忽略"""
    ids = [n.id for n in manager.store.list_forest(FOREST)]
    first, second = pick(ids, i), pick(ids, j)
    try:
        if op == "create" or not ids:
            manager.create(FOREST, f"N{len(ids)}", f"/n{len(ids)}", parent_id=second if i % 2 else None)
        elif op == "reparent":
            manager.reparent(first, second)
        elif op == "root":
            manager.reparent(first, None)
        elif op == "delete":
            manager.delete(first, cascade=bool(j % 2))
        elif op == "reorder":
            node = manager.get(first)
            siblings = [n.id for n in manager.list_children(FOREST, node.parent_id)]
            manager.reassign_order(FOREST, node.parent_id, list(reversed(siblings)))
        elif op == "up":
            manager.move_up(first)
        elif op == "down":
            manager.move_down(first)
    except TreeError:
        pass


def assert_acyclic(nodes):
    by_id = {n.id: n for n in nodes}
    for node in nodes:
        current = node.parent_id
        for _ in range(len(nodes) + 1):
            if current is None:
                break
            assert current != node.id
            current = by_id[current].parent_id
        else:
            raise AssertionError(f"祖先链没有终止: {node.id}")


def assert_dense(nodes):
    groups = {}
    for node in nodes:
        groups.setdefault(node.parent_id, []).append(node.order)
    for orders in groups.values():
        assert sorted(orders) == list(range(len(orders)))


def assert_round_trip(nodes):
    result = build_forest(nodes)
    assert not result.has_warnings
    flattened = flatten_forest(result)
    assert sorted(n.id for n in flattened) == sorted(n.id for n in nodes)

    stack = list(result.roots)
    while stack:
        tree_node = stack.pop()
        orders = [child.node.order for child in tree_node.children]
        assert orders == sorted(orders)
        stack.extend(tree_node.children)


def check_all(store):
    nodes = store.list_forest(FOREST)
    assert_acyclic(nodes)
    assert_dense(nodes)
    assert_round_trip(nodes)


class TestTreeProperties:
    """随机操作序列下的不变量"""

    @given(operations)
    @settings(max_examples=100, deadline=None)
    def test_invariants_memory_store(self, ops):
        """内存存储：每一步之后都保持不变量"""
        store = MemoryNodeStore()
        manager = new_manager(store)

        for op, i, j in ops:
            apply(manager, op, i, j)
            check_all(store)

    @given(operations)
    @settings(
        max_examples=25,
        deadline=None,
        suppress_health_check=[HealthCheck.too_slow],
    )
    def test_invariants_orm_store(self, ops):
        """ORM 存储：操作序列结束后保持不变量"""
        engine = create_engine(
            "sqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=engine)
        session = sessionmaker(bind=engine)()
        try:
            store = ORMNodeStore(session=session)
            manager = new_manager(store)
            for op, i, j in ops:
                apply(manager, op, i, j)
            check_all(store)
        finally:
            session.close()
            engine.dispose()


class TestNormalizeProperties:
    """规整排序的属性"""

    @given(st.lists(st.integers(min_value=-50, max_value=50), max_size=20))
    def test_normalize_idempotent(self, orders):
        """规整后为 0..n-1，再次规整不变"""
        siblings = [
            Node(forest=FOREST, label=str(i), target="/", id=f"n{i:02d}", order=order)
            for i, order in enumerate(orders)
        ]

        once = normalize(siblings)
        twice = normalize(once)

        assert [n.order for n in once] == list(range(len(orders)))
        assert [(n.id, n.order) for n in once] == [(n.id, n.order) for n in twice]
