"""LLVM-flavoured text rendering of IR, for diagnostics and tests."""

from typing import List

from irmemo.ir.program import Function, Instruction, Module, Opcode


def format_operands(inst: Instruction) -> str:
    return ', '.join(f'{op.type} {op.reference()}' for op in inst.operands)


def format_instruction(inst: Instruction) -> str:
    if inst.opcode is Opcode.CALL:
        body = f'call {inst.type} @{inst.callee.name}({format_operands(inst)})'
    elif inst.opcode is Opcode.BR:
        parts = [f'{op.type} {op.reference()}' for op in inst.operands]
        parts += [f'label %{b.name}' for b in inst.targets]
        body = 'br ' + ', '.join(parts)
    elif inst.opcode is Opcode.RET and not inst.operands:
        body = 'ret void'
    else:
        operands = format_operands(inst)
        body = f'{inst.opcode.value} {operands}' if operands else inst.opcode.value
    if inst.result is not None:
        return f'{inst.result.reference()} = {body}'
    return body


def format_function(fn: Function) -> str:
    params = ', '.join(f'{a.type} %{a.name}' for a in fn.arguments)
    if fn.is_variadic:
        params = f'{params}, ...' if params else '...'
    header = f'{fn.return_type} @{fn.name}({params})'
    if fn.is_declaration:
        return f'declare {header}'
    lines: List[str] = [f'define {header} {{']
    for block in fn.blocks:
        lines.append(f'{block.name}:')
        lines.extend(f'  {format_instruction(inst)}' for inst in block)
    lines.append('}')
    return '\n'.join(lines)


def format_module(module: Module) -> str:
    parts = [f'; ModuleID = {module.name!r}']
    for gv in module.globals:
        init = gv.initializer.key_text() if gv.initializer is not None else 'zeroinitializer'
        parts.append(f'@{gv.name} = global {gv.value_type} {init}')
    parts.extend(format_function(fn) for fn in module.functions)
    return '\n\n'.join(parts)
