"""Oracle registry.

Adding an oracle implementation should not require changing the scenario
loader: implementations register a factory under a plugin id and scenario
files pick them by that id.
"""

from __future__ import annotations

import importlib
from typing import Any, Callable, Dict, Mapping

OracleFactory = Callable[[Mapping[str, Any]], Any]

_REGISTRY: Dict[str, OracleFactory] = {}
_BUILTIN_ORACLE_MODULES = [
    "bt_access.oracles.static",
]
_BUILTINS_LOADED = False


def register_oracle(plugin_id: str) -> Callable[[OracleFactory], OracleFactory]:
    """Decorator to register an oracle factory function."""

    def _decorator(factory: OracleFactory) -> OracleFactory:
        if plugin_id in _REGISTRY:
            raise ValueError(f"duplicate oracle plugin id: {plugin_id}")
        _REGISTRY[plugin_id] = factory
        return factory

    return _decorator


def available_oracles() -> Dict[str, OracleFactory]:
    load_builtin_oracles()
    return dict(_REGISTRY)


def make_oracle(oracle_cfg: Mapping[str, Any]) -> Any:
    load_builtin_oracles()

    plugin = oracle_cfg.get("plugin") or oracle_cfg.get("type")
    if not isinstance(plugin, str):
        raise ValueError("oracle config must contain 'plugin' or 'type' string")

    factory = _REGISTRY.get(plugin)
    if factory is None:
        raise ValueError(f"unknown oracle plugin: {plugin}")
    return factory(dict(oracle_cfg))


def load_builtin_oracles() -> None:
    """Import built-in oracle modules so they can register their plugins."""

    global _BUILTINS_LOADED
    if _BUILTINS_LOADED:
        return

    for module_name in _BUILTIN_ORACLE_MODULES:
        importlib.import_module(module_name)
    _BUILTINS_LOADED = True
