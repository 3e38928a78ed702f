"""
Read-only queries over the IR shared by the classifier and the rewriter.
"""

from typing import Iterator, List

from irmemo.ir.program import Function, Instruction, Opcode
from irmemo.ir.values import Argument, GlobalVariable, Value, ValueKind, unhandled_value_kind
from irmemo.utils.helpers import stable_unique


def call_instructions(fn: Function) -> Iterator[Instruction]:
    for inst in fn.instructions():
        if inst.is_call:
            yield inst


def collect_free_globals(fn: Function) -> List[GlobalVariable]:
    """Distinct global variables read or written in ``fn``, in first-use order."""
    found: List[GlobalVariable] = []
    for inst in fn.instructions():
        for op in inst.operands:
            if _as_global(op) is not None:
                found.append(op)
    return stable_unique(found)


def _as_global(value: Value):
    kind = value.kind
    if kind is ValueKind.GLOBAL_VARIABLE:
        return value
    if kind in (ValueKind.ARGUMENT, ValueKind.CONSTANT, ValueKind.INSTRUCTION_RESULT):
        return None
    unhandled_value_kind(value)


def is_direct_access(arg: Argument, inst: Instruction) -> bool:
    """True if ``inst`` only reads or writes memory through ``arg``.

    A store of the pointer itself (``store %p, %q``) lets it escape and is
    not a direct access.
    """
    if inst.opcode is Opcode.LOAD:
        return inst.operands[0] is arg
    if inst.opcode is Opcode.STORE:
        value, ptr = inst.operands
        return ptr is arg and value is not arg
    return False


def unsafe_pointer_uses(arg: Argument) -> List[Instruction]:
    return [user for user in stable_unique(arg.users) if not is_direct_access(arg, user)]


def is_safe_argument(arg: Argument) -> bool:
    """Non-pointer parameters are always safe; pointer parameters only when
    every use is a direct load or store through them."""
    if not arg.type.is_pointer:
        return True
    return not unsafe_pointer_uses(arg)
