"""
LLVM IR lowering of dispatch plans - wraps llvmlite's ir.IRBuilder.

Each plan becomes ``i32 @"<name>.dispatch"(i32 %tag)``: a ``switch`` over the
variant tag whose cases return the arm index. The default block returns the
wildcard arm, or is ``unreachable`` when the plan covers every tag without one.
"""

from typing import Iterable, Optional
from llvmlite import ir

from .dispatch import DispatchPlan, NO_ARM
from ..logger import logger


I32 = ir.IntType(32)


class DispatchBuilder:
    """Accumulates dispatch functions in one LLVM module."""

    def __init__(self, module_name: str = "pysealed.dispatch"):
        self.module = ir.Module(name=module_name)
        self._functions = {}

    def add_plan(self, plan: DispatchPlan) -> ir.Function:
        func_name = f"{plan.name}.dispatch"
        if func_name in self._functions:
            return self._functions[func_name]

        fnty = ir.FunctionType(I32, [I32])
        func = ir.Function(self.module, fnty, name=func_name)
        tag = func.args[0]
        tag.name = "tag"

        entry = func.append_basic_block("entry")
        default_block = func.append_basic_block("default")
        builder = ir.IRBuilder(entry)
        switch = builder.switch(tag, default_block)

        for value, arm in enumerate(plan.arm_for_tag):
            variant_name = plan.variant_names[value] if value < len(plan.variant_names) else str(value)
            block = func.append_basic_block(f"case.{variant_name}")
            switch.add_case(ir.Constant(I32, value), block)
            ir.IRBuilder(block).ret(ir.Constant(I32, arm))

        builder = ir.IRBuilder(default_block)
        if plan.default_arm is not None:
            builder.ret(ir.Constant(I32, plan.default_arm))
        elif not plan.all_tags_routed:
            builder.ret(ir.Constant(I32, NO_ARM))
        else:
            builder.unreachable()

        logger.debug(f"Lowered dispatch for {plan.name}", subject=plan.subject_name,
                     cases=len(plan.arm_for_tag))
        self._functions[func_name] = func
        return func

    def add_plans(self, plans: Iterable[DispatchPlan]) -> ir.Module:
        for plan in plans:
            self.add_plan(plan)
        return self.module

    def get_ir(self) -> str:
        return str(self.module)


def build_dispatch_module(plans: Iterable[DispatchPlan],
                          module_name: Optional[str] = None) -> ir.Module:
    """Lower plans into a fresh LLVM module."""
    builder = DispatchBuilder(module_name or "pysealed.dispatch")
    return builder.add_plans(plans)
