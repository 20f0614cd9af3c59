"""ORM 节点存储

基于 SQLAlchemy 的节点持久化存储。

使用示例:
    from ytree.orm import init_database, db_manager
    from ytree.store import ORMNodeStore

    init_database(config=settings.database)
    db_manager.create_tables()

    # 默认使用 db_manager 的 session，事务结束自动提交
    store = ORMNodeStore()

    # 自定义表，并由调用方控制提交
    store = ORMNodeStore(model=ProductCategory, session=session, auto_commit=False)

    # 不使用森林锚点表（根分组的并发写入需要数据库以 SERIALIZABLE 隔离级别运行）
    store = ORMNodeStore(model=ProductCategory, lock_model=None)
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Type

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ytree.exceptions import StorageError
from ytree.log import get_logger
from ytree.orm import ForestLockModel, TreeNodeModel, db_manager
from ytree.tree.types import Node
from ytree.utils import generate_id

from .base import BaseNodeStore

logger = get_logger()

# Node 字段 -> 模型列名，未列出的字段同名
_COLUMN_NAMES = {"order": "sort_order"}

_NODE_COLUMNS = (
    "id", "forest", "label", "target", "parent_id", "order", "active",
    "slug", "description", "icon", "image", "created_at", "updated_at",
)

# 事务嵌套深度记在 session.info 中，多个线程共用一个 store 时各自独立
_DEPTH_KEY = "ytree.transaction_depth"


class ORMNodeStore(BaseNodeStore):
    """基于 SQLAlchemy 的节点存储

    事务行为:
        - auto_commit=True: 最外层事务成功时提交，失败时回滚
        - auto_commit=False: 使用 SAVEPOINT（begin_nested），外层提交由调用方负责
        - 嵌套调用 transaction() 并入最外层事务，嵌套深度按 session 计算
        - 事务内 list_by_parent(for_update=True) 先锁住分组的锚点行，再用
          SELECT ... FOR UPDATE 读取同级节点，方言不支持时（如 SQLite）忽略。
          子节点分组的锚点是父节点行，根分组的锚点是 lock_model 中该森林的行
        - 两个事务同时创建同一森林的锚点行时，后提交的一方因主键冲突
          抛出 StorageError，重试即可

    SQLAlchemyError 统一包装为 StorageError，原始异常保存在 __cause__ 中。
    """

    def __init__(
        self,
        model: Type = TreeNodeModel,
        session: Session = None,
        auto_commit: bool = True,
        lock_model: Optional[Type] = ForestLockModel,
    ):
        """初始化 ORM 存储

        Args:
            model: 节点模型类，需包含 TreeNodeFieldsMixin 的字段以及 id / parent_id
            session: SQLAlchemy Session，不传时使用 db_manager 当前作用域的 session
            auto_commit: 最外层事务结束时是否提交
            lock_model: 森林锚点模型（主键列为 forest），为 None 时根分组不加锁
        """
        self.model = model
        self._session = session
        self.auto_commit = auto_commit
        self.lock_model = lock_model

    @property
    def session(self) -> Session:
        if self._session is not None:
            return self._session
        return db_manager.get_session()

    @property
    def in_transaction(self) -> bool:
        return self.session.info.get(_DEPTH_KEY, 0) > 0

    # ==================== 转换 ====================

    def _to_node(self, record) -> Node:
        return Node(**{
            name: getattr(record, _COLUMN_NAMES.get(name, name))
            for name in _NODE_COLUMNS
        })

    def _to_columns(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        columns = {}
        for name, value in fields.items():
            if name not in _NODE_COLUMNS:
                raise StorageError(f"未知字段: {name}")
            columns[_COLUMN_NAMES.get(name, name)] = value
        return columns

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"{action}失败: {e}")
            raise StorageError(f"{action}失败") from e

    # ==================== 读取 ====================

    def get_by_id(self, node_id: str) -> Optional[Node]:
        with self._guard("查询节点"):
            record = self.session.get(self.model, node_id)
            return self._to_node(record) if record is not None else None

    def list_by_parent(
        self,
        forest: str,
        parent_id: Optional[str] = None,
        for_update: bool = False,
    ) -> List[Node]:
        Model = self.model
        stmt = select(Model).where(Model.forest == forest)
        if parent_id is None:
            stmt = stmt.where(Model.parent_id.is_(None))
        else:
            stmt = stmt.where(Model.parent_id == parent_id)
        stmt = stmt.order_by(Model.sort_order, Model.id)
        locking = for_update and self.in_transaction
        if locking:
            stmt = stmt.with_for_update()

        with self._guard("查询同级节点"):
            if locking:
                self._lock_group(forest, parent_id)
            return [self._to_node(r) for r in self.session.scalars(stmt).all()]

    def list_forest(self, forest: str) -> List[Node]:
        Model = self.model
        stmt = (
            select(Model)
            .where(Model.forest == forest)
            .order_by(Model.parent_id, Model.sort_order, Model.id)
        )
        with self._guard("查询森林"):
            return [self._to_node(r) for r in self.session.scalars(stmt).all()]

    # ==================== 分组锁 ====================

    def group_lock_statement(self, forest: str, parent_id: Optional[str] = None):
        """同级分组锚点行的加锁查询，根分组且未配置 lock_model 时返回 None"""
        if parent_id is not None:
            return select(self.model.id).where(self.model.id == parent_id).with_for_update()
        if self.lock_model is None:
            return None
        LockModel = self.lock_model
        return select(LockModel.forest).where(LockModel.forest == forest).with_for_update()

    def _lock_group(self, forest: str, parent_id: Optional[str]) -> None:
        # 空分组上没有同级行可锁，FOR UPDATE 读同级节点无法串行化“追加到末尾”
        stmt = self.group_lock_statement(forest, parent_id)
        if stmt is None:
            return
        session = self.session
        if session.execute(stmt).first() is None and parent_id is None:
            session.add(self.lock_model(forest=forest))
            session.flush()

    # ==================== 写入 ====================

    def insert(self, node: Node) -> Node:
        fields = node.to_dict()
        fields["id"] = node.id or generate_id()
        # 时间戳为空时交给列默认值
        for name in ("created_at", "updated_at"):
            if fields[name] is None:
                fields.pop(name)

        with self._guard("插入节点"):
            record = self.model(**self._to_columns(fields))
            session = self.session
            session.add(record)
            session.flush()
            return self._to_node(record)

    def update_fields(self, node_id: str, **fields: Any) -> Node:
        columns = self._to_columns(fields)
        with self._guard("更新节点"):
            session = self.session
            record = session.get(self.model, node_id)
            if record is None:
                raise StorageError(f"更新失败，节点不存在: {node_id}")
            for column, value in columns.items():
                setattr(record, column, value)
            session.flush()
            return self._to_node(record)

    def delete_by_id(self, node_id: str) -> None:
        with self._guard("删除节点"):
            session = self.session
            record = session.get(self.model, node_id)
            if record is None:
                return
            session.delete(record)
            session.flush()

    # ==================== 事务 ====================

    @contextmanager
    def transaction(self) -> Iterator["ORMNodeStore"]:
        session = self.session
        depth = session.info.get(_DEPTH_KEY, 0)
        if depth > 0:
            session.info[_DEPTH_KEY] = depth + 1
            try:
                yield self
            finally:
                session.info[_DEPTH_KEY] = depth
            return

        savepoint = None if self.auto_commit else session.begin_nested()
        session.info[_DEPTH_KEY] = 1
        try:
            yield self
        except BaseException:
            session.info[_DEPTH_KEY] = 0
            self._rollback(session, savepoint)
            raise

        session.info[_DEPTH_KEY] = 0
        with self._guard("提交事务"):
            try:
                if savepoint is not None:
                    savepoint.commit()
                else:
                    session.commit()
            except SQLAlchemyError:
                self._rollback(session, savepoint)
                raise

    def _rollback(self, session: Session, savepoint) -> None:
        with self._guard("回滚事务"):
            if savepoint is not None:
                if savepoint.is_active:
                    savepoint.rollback()
            else:
                session.rollback()
        logger.debug("ORM 存储事务回滚")
