"""Convenience builder that appends instructions to a basic block."""

from typing import Optional, Sequence

from irmemo.ir.program import BasicBlock, Function, Instruction, Opcode
from irmemo.ir.types import I1, PointerType, Type
from irmemo.ir.values import Value


class IRBuilder:
    """
    Appends instructions at the end of a block and returns their results.

    Usage:
        >>> fn = Function('add', [I32, I32], I32)
        >>> b = IRBuilder(fn.append_block('entry'))
        >>> b.ret(b.binop(Opcode.ADD, *fn.arguments))
    """

    def __init__(self, block: BasicBlock):
        self.block = block

    def position_at_end(self, block: BasicBlock):
        self.block = block

    def _emit(self, inst: Instruction) -> Instruction:
        return self.block.append(inst)

    def load(self, ptr: Value, name: str = '') -> Value:
        if not isinstance(ptr.type, PointerType):
            raise ValueError(f"load from non-pointer {ptr.type}")
        return self._emit(Instruction(Opcode.LOAD, [ptr], ptr.type.pointee, name=name)).result

    def store(self, value: Value, ptr: Value) -> Instruction:
        if not isinstance(ptr.type, PointerType):
            raise ValueError(f"store to non-pointer {ptr.type}")
        return self._emit(Instruction(Opcode.STORE, [value, ptr]))

    def binop(self, opcode: Opcode, lhs: Value, rhs: Value, name: str = '') -> Value:
        return self._emit(Instruction(opcode, [lhs, rhs], lhs.type, name=name)).result

    def icmp(self, lhs: Value, rhs: Value, name: str = '') -> Value:
        return self._emit(Instruction(Opcode.ICMP, [lhs, rhs], I1, name=name)).result

    def cast(self, value: Value, to: Type, name: str = '') -> Value:
        return self._emit(Instruction(Opcode.CAST, [value], to, name=name)).result

    def gep(self, ptr: Value, index: Value, name: str = '') -> Value:
        return self._emit(Instruction(Opcode.GEP, [ptr, index], ptr.type, name=name)).result

    def alloca(self, allocated: Type, name: str = '') -> Value:
        return self._emit(Instruction(Opcode.ALLOCA, [], PointerType(allocated), name=name)).result

    def call(self, callee: Function, args: Sequence[Value] = (), name: str = '') -> Instruction:
        """Emit a call; returns the instruction (its ``result`` may be None)."""
        return self._emit(Instruction(
            Opcode.CALL, args, callee.return_type, callee=callee, name=name,
        ))

    def memo_lookup(self, args: Sequence[Value], result_type: Type, name: str = '') -> Instruction:
        return self._emit(Instruction(Opcode.MEMO_LOOKUP, args, result_type, name=name))

    def br(self, *targets: BasicBlock, cond: Optional[Value] = None) -> Instruction:
        operands = [cond] if cond is not None else []
        return self._emit(Instruction(Opcode.BR, operands, targets=targets))

    def ret(self, value: Optional[Value] = None) -> Instruction:
        return self._emit(Instruction(Opcode.RET, [value] if value is not None else []))
