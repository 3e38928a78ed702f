"""
In-memory program representation consumed by the memoization pass:
types, values, instructions, blocks, functions and modules.
"""

from irmemo.ir.types import (
    TypeKind,
    Type,
    VoidType,
    IntegerType,
    FloatType,
    DoubleType,
    PointerType,
    ArrayType,
    StructType,
    VOID,
    I1,
    I8,
    I32,
    I64,
    FLOAT,
    DOUBLE,
    pointer_to,
)
from irmemo.ir.values import (
    ValueKind,
    Value,
    Argument,
    Constant,
    GlobalVariable,
    InstructionResult,
)
from irmemo.ir.program import (
    Opcode,
    Linkage,
    Instruction,
    BasicBlock,
    Function,
    Module,
)
from irmemo.ir.builder import IRBuilder
from irmemo.ir.printer import format_function, format_instruction, format_module

__all__ = [
    'TypeKind', 'Type', 'VoidType', 'IntegerType', 'FloatType', 'DoubleType',
    'PointerType', 'ArrayType', 'StructType',
    'VOID', 'I1', 'I8', 'I32', 'I64', 'FLOAT', 'DOUBLE', 'pointer_to',
    'ValueKind', 'Value', 'Argument', 'Constant', 'GlobalVariable', 'InstructionResult',
    'Opcode', 'Linkage', 'Instruction', 'BasicBlock', 'Function', 'Module',
    'IRBuilder',
    'format_function', 'format_instruction', 'format_module',
]
