"""
IR Program Structure
====================

Modules, functions, basic blocks and instructions.

    Module ─┬─ GlobalVariable*
            └─ Function* ── BasicBlock* ── Instruction*

A function with no basic blocks is a declaration. Call instructions hold a
reference to their callee ``Function`` and use their operands as the actual
argument list. Every instruction registers itself in the ``users`` list of
each operand on construction and unregisters on ``erase``.
"""

from enum import Enum
from typing import Iterable, Iterator, List, Optional, Sequence

from irmemo.ir.types import VOID, Type
from irmemo.ir.values import Argument, GlobalVariable, InstructionResult, Value


class Opcode(Enum):
    LOAD = 'load'
    STORE = 'store'
    CALL = 'call'
    ADD = 'add'
    SUB = 'sub'
    MUL = 'mul'
    SDIV = 'sdiv'
    FADD = 'fadd'
    FSUB = 'fsub'
    FMUL = 'fmul'
    FDIV = 'fdiv'
    ICMP = 'icmp'
    FCMP = 'fcmp'
    CAST = 'cast'
    GEP = 'getelementptr'
    ALLOCA = 'alloca'
    BR = 'br'
    RET = 'ret'
    # Placeholder lowered by the memoization runtime into a table lookup.
    MEMO_LOOKUP = 'memo_lookup'


class Linkage(Enum):
    EXTERNAL = 'external'
    INTERNAL = 'internal'
    PRIVATE = 'private'
    AVAILABLE_EXTERNALLY = 'available_externally'
    LINKONCE = 'linkonce'
    LINKONCE_ODR = 'linkonce_odr'
    WEAK = 'weak'
    WEAK_ODR = 'weak_odr'
    COMMON = 'common'
    EXTERN_WEAK = 'extern_weak'


# Linkages whose definition may be replaced by another one at link time.
INTERPOSABLE_LINKAGES = frozenset({
    Linkage.LINKONCE,
    Linkage.WEAK,
    Linkage.COMMON,
    Linkage.EXTERN_WEAK,
})


class Instruction:
    """A single IR instruction.

    ``result`` is ``None`` for instructions typed ``void``.
    """

    def __init__(
        self,
        opcode: Opcode,
        operands: Sequence[Value] = (),
        result_type: Type = VOID,
        *,
        callee: Optional['Function'] = None,
        targets: Sequence['BasicBlock'] = (),
        name: str = '',
    ):
        if (opcode is Opcode.CALL) != (callee is not None):
            raise ValueError("exactly the call opcode carries a callee")
        self.opcode = opcode
        self.operands: List[Value] = list(operands)
        self.callee = callee
        self.targets: List['BasicBlock'] = list(targets)
        self.parent: Optional['BasicBlock'] = None
        self.result: Optional[InstructionResult] = None
        if not result_type.is_void:
            self.result = InstructionResult(type=result_type, name=name, producer=self)
        for op in self.operands:
            op.users.append(self)

    @property
    def is_call(self) -> bool:
        return self.opcode is Opcode.CALL

    @property
    def arguments(self) -> List[Value]:
        """Actual arguments of a call, in call order."""
        return list(self.operands) if self.is_call else []

    @property
    def type(self) -> Type:
        return self.result.type if self.result is not None else VOID

    @property
    def function(self) -> Optional['Function']:
        return self.parent.parent if self.parent is not None else None

    def replace_operand(self, old: Value, new: Value):
        for i, op in enumerate(self.operands):
            if op is old:
                self.operands[i] = new
                old.users.remove(self)
                new.users.append(self)

    def erase(self):
        """Unlink from the parent block and drop all operand uses."""
        if self.result is not None and self.result.has_uses:
            raise ValueError(f"cannot erase {self.opcode.value}: result still in use")
        if self.parent is None:
            raise ValueError(f"{self.opcode.value} instruction is not in a block")
        self.parent.instructions.remove(self)
        self.parent = None
        for op in self.operands:
            op.users.remove(self)
        self.operands = []

    def __repr__(self):
        from irmemo.ir.printer import format_instruction
        return f'<Instruction {format_instruction(self)}>'


class BasicBlock:
    def __init__(self, name: str = '', parent: Optional['Function'] = None):
        self.name = name
        self.parent = parent
        self.instructions: List[Instruction] = []

    def append(self, inst: Instruction) -> Instruction:
        inst.parent = self
        self.instructions.append(inst)
        return inst

    def insert_before(self, inst: Instruction, anchor: Instruction) -> Instruction:
        inst.parent = self
        self.instructions.insert(self.instructions.index(anchor), inst)
        return inst

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)

    def __len__(self):
        return len(self.instructions)


class Function:
    """An IR function: a declaration when it has no blocks."""

    def __init__(
        self,
        name: str,
        param_types: Sequence[Type] = (),
        return_type: Type = VOID,
        *,
        param_names: Optional[Sequence[str]] = None,
        is_variadic: bool = False,
        is_intrinsic: Optional[bool] = None,
        linkage: Linkage = Linkage.EXTERNAL,
        interposable: bool = False,
        attributes: Iterable[str] = (),
    ):
        if param_names is None:
            param_names = [f'arg{i}' for i in range(len(param_types))]
        if len(param_names) != len(param_types):
            raise ValueError("param_names and param_types differ in length")
        self.name = name
        self.return_type = return_type
        self.arguments: List[Argument] = [
            Argument(type=t, name=n, parent=self, index=i)
            for i, (t, n) in enumerate(zip(param_types, param_names))
        ]
        self.is_variadic = is_variadic
        self.is_intrinsic = name.startswith('llvm.') if is_intrinsic is None else is_intrinsic
        self.linkage = linkage
        self.interposable = interposable
        self.attributes = set(attributes)
        self.blocks: List[BasicBlock] = []
        self.module: Optional['Module'] = None

    @property
    def param_types(self) -> List[Type]:
        return [a.type for a in self.arguments]

    @property
    def is_declaration(self) -> bool:
        return not self.blocks

    @property
    def may_be_overridden(self) -> bool:
        """True if another definition may replace this one at link time."""
        return self.interposable or self.linkage in INTERPOSABLE_LINKAGES

    def append_block(self, name: str = '') -> BasicBlock:
        block = BasicBlock(name or f'bb{len(self.blocks)}', parent=self)
        self.blocks.append(block)
        return block

    def instructions(self) -> Iterator[Instruction]:
        for block in self.blocks:
            yield from block.instructions

    def __repr__(self):
        return f'<Function {self.name}>'


class Module:
    """A compiled unit: globals and functions in declaration order."""

    def __init__(self, name: str = 'module'):
        self.name = name
        self.functions: List[Function] = []
        self.globals: List[GlobalVariable] = []

    def add_function(self, fn: Function) -> Function:
        if self.get_function(fn.name) is not None:
            raise ValueError(f"function '{fn.name}' already defined in {self.name}")
        fn.module = self
        self.functions.append(fn)
        return fn

    def get_function(self, name: str) -> Optional[Function]:
        for fn in self.functions:
            if fn.name == name:
                return fn
        return None

    def add_global(self, name: str, value_type: Type, initializer=None) -> GlobalVariable:
        if self.get_global(name) is not None:
            raise ValueError(f"global '{name}' already defined in {self.name}")
        gv = GlobalVariable.of(name, value_type, initializer)
        self.globals.append(gv)
        return gv

    def get_global(self, name: str) -> Optional[GlobalVariable]:
        for gv in self.globals:
            if gv.name == name:
                return gv
        return None

    def call_sites_of(self, fn: Function) -> List[Instruction]:
        """Every call instruction targeting ``fn``, in declaration order."""
        return [
            inst
            for caller in self.functions
            for inst in caller.instructions()
            if inst.is_call and inst.callee is fn
        ]

    def __iter__(self) -> Iterator[Function]:
        return iter(self.functions)
