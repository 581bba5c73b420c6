"""bt-access: Bluetooth access-control evaluation.

Provides:
- hardware address and UUID wire codecs
- attribution chains and the disavowal walker
- the permission evaluator and caller gating
- offline scenario evaluation against in-memory oracles
"""

__all__ = [
    "attribution",
    "audit",
    "cli",
    "codec",
    "config",
    "errors",
    "foreground",
    "identity",
    "oracles",
    "permissions",
    "scenario",
    "types",
    "utils",
]
