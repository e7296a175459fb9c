import importlib
import pkgutil
import inspect
import logging

from .base import BaseBalanceAdapter
from ..errors import UnsupportedProvider

logger = logging.getLogger(__name__)


class AdapterFactory:
    _adapters = {}  # provider -> adapter_class
    _discovered = False

    @classmethod
    def register(cls, provider):
        """装饰器：注册适配器类"""

        def wrapper(adapter_class):
            if not issubclass(adapter_class, BaseBalanceAdapter):
                raise TypeError(f"{adapter_class} must inherit from BaseBalanceAdapter")
            cls._adapters[provider] = adapter_class
            return adapter_class

        return wrapper

    @classmethod
    def get_adapter(cls, provider: str) -> BaseBalanceAdapter:
        if not cls._discovered:
            cls._discover_adapters()
        adapter_class = cls._adapters.get(provider)
        if not adapter_class:
            raise UnsupportedProvider(provider)
        return adapter_class()

    @classmethod
    def providers(cls):
        if not cls._discovered:
            cls._discover_adapters()
        return sorted(cls._adapters)

    @classmethod
    def _discover_adapters(cls):
        """自动扫描 adapters 包下的所有模块，收集被 @register 装饰的类"""
        cls._discovered = True
        package = importlib.import_module("..adapters", __package__)
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            if module_name.startswith("__") or module_name in ("base", "factory"):
                continue
            try:
                module = importlib.import_module(f"..adapters.{module_name}", __package__)
            except ImportError as e:
                logger.warning(f"跳过适配器模块 {module_name}，因为依赖缺失: {e}")
                continue
            for name, obj in inspect.getmembers(module, inspect.isclass):
                if issubclass(obj, BaseBalanceAdapter) and obj is not BaseBalanceAdapter:
                    if getattr(obj, "provider_name", ""):
                        cls._adapters[obj.provider_name] = obj
