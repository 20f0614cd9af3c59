__version__ = "0.1.0"
__author__ = "ytree"
__description__ = "分类与导航等树形节点森林管理库"
