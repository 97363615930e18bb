from .dispatch import DispatchPlan, plan_dispatch, RUNTIME_TEST, NO_ARM
from .llvm_builder import DispatchBuilder, build_dispatch_module

__all__ = [
    'DispatchPlan',
    'plan_dispatch',
    'RUNTIME_TEST',
    'NO_ARM',
    'DispatchBuilder',
    'build_dispatch_module',
]
