"""
树形节点模块 - 工厂函数

提供一站式设置：按配置创建存储、管理器和路由，并挂载到 FastAPI 应用。

使用示例:
=========

方式1：一站式设置（推荐）
------------------------
    from ytree import setup_tree, load_yaml_config, AppSettings

    settings = load_yaml_config("config/settings.yaml", AppSettings)
    tree = setup_tree(app=app, settings=settings)

    tree.manager.create("category", "Phones", "phones")

方式2：分步设置
--------------
    tree = setup_tree(settings=settings)

    # 中间可插入自定义逻辑...

    tree.mount_routes(app, prefix="/api/v1/tree")
"""

from dataclasses import dataclass, field
from typing import List, Optional

from fastapi import APIRouter

from .api import create_tree_router
from .config import AppSettings
from .exceptions import register_exception_handlers
from .log import get_logger
from .orm import db_manager, init_database
from .store import BaseNodeStore, MemoryNodeStore, ORMNodeStore
from .tree import TreeManager

logger = get_logger()


@dataclass
class TreeSetup:
    """树形节点模块容器

    属性:
        settings: 应用配置
        store: 节点存储
        manager: TreeManager 实例
        router: 已创建的 APIRouter
    """
    settings: AppSettings
    store: BaseNodeStore
    manager: TreeManager
    router: APIRouter
    mounted_prefixes: List[str] = field(default_factory=list)

    def mount_routes(
        self,
        app,
        prefix: str = "/api/tree",
        tags: list = None,
        dependencies: list = None,
    ):
        """挂载路由与全局异常处理器到 FastAPI 应用

        Args:
            app: FastAPI 应用实例
            prefix: API 路由前缀
            tags: OpenAPI 标签
            dependencies: 路由依赖（如权限检查）
        """
        if not self.mounted_prefixes:
            register_exception_handlers(app)
        app.include_router(
            self.router,
            prefix=prefix,
            tags=tags or ["树形节点"],
            dependencies=dependencies or [],
        )
        self.mounted_prefixes.append(prefix)
        logger.info(f"树形节点路由已挂载: {prefix}")


def create_store(settings: AppSettings) -> BaseNodeStore:
    """按配置创建节点存储

    database.url 为空时使用内存存储，否则初始化数据库并建表后使用 ORM 存储。
    """
    if not settings.database.url:
        logger.info("未配置数据库，使用内存存储")
        return MemoryNodeStore()

    if not db_manager.is_initialized:
        init_database(config=settings.database)
    db_manager.create_tables()
    return ORMNodeStore()


def setup_tree(
    app=None,
    settings: Optional[AppSettings] = None,
    store: Optional[BaseNodeStore] = None,
    api_prefix: str = "/api/tree",
    tags: list = None,
    dependencies: list = None,
    forest: Optional[str] = None,
) -> TreeSetup:
    """一站式设置树形节点模块

    Args:
        app: FastAPI 应用实例（可选，传入时自动挂载路由和异常处理器）
        settings: 应用配置，默认从环境变量加载
        store: 自定义节点存储，不传时按 settings.database 创建
        api_prefix: API 路由前缀
        tags: OpenAPI 标签
        dependencies: 路由依赖
        forest: 路由的默认森林

    Returns:
        TreeSetup 容器

    使用示例:
        tree = setup_tree(app=app)

        tree = setup_tree(
            app=app,
            settings=settings,
            api_prefix="/api/categories",
            forest="category",
        )
    """
    settings = settings or AppSettings()
    if store is None:
        store = create_store(settings)

    manager = TreeManager(store, settings.tree)
    router = create_tree_router(manager, forest=forest)
    tree = TreeSetup(settings=settings, store=store, manager=manager, router=router)

    if app is not None:
        tree.mount_routes(app, prefix=api_prefix, tags=tags, dependencies=dependencies)

    return tree
