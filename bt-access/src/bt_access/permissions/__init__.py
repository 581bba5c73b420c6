from bt_access.permissions.callers import CallerGate
from bt_access.permissions.evaluator import LOCATION_CHECK_MESSAGE, PermissionEvaluator

__all__ = ["CallerGate", "LOCATION_CHECK_MESSAGE", "PermissionEvaluator"]
