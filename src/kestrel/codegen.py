"""Lower a parsed Kestrel Program to LLVM IR with llvmlite.

Each declaration becomes one LLVM function with an ``entry`` block.
No type checking happens here; only constructs that cannot be expressed
in IR at all are reported (as ``E300`` diagnostics). Parameters are
referred to by the names an ``args!`` statement gives them.
"""

from __future__ import annotations

import logging

from llvmlite import ir

from kestrel.ast_nodes import (
    AddExpr,
    BinaryExpr,
    Block,
    Expr,
    FnType,
    FunctionDecl,
    FunctionType,
    IfStmt,
    LessExpr,
    MacroStmt,
    NamedType,
    NameExpr,
    NumberLit,
    PointerType,
    Program,
    ReturnStmt,
    Stmt,
    StringLit,
    SubExpr,
    TypeExpr,
)
from kestrel.config import KestrelConfig
from kestrel.errors import CompileError, Error
from kestrel.source import Location

LOGGER = logging.getLogger(__name__)

_BYTE = ir.IntType(8)
_INDEX = ir.IntType(32)

# Fixed-width named types; `int` follows the configured width.
_FIXED_INTS: dict[str, int] = {
    "bool": 1,
    "char": 8,
}

_KNOWN_TYPES = "known types are int, bool, char and void"


class _CodegenError(Exception):
    """Internal: unwinds lowering back to emit()."""

    def __init__(self, location: Location, message: str, **extra) -> None:
        super().__init__(message)
        self.error = Error(location, message, code="E300", **extra)


class LLVMEmitter:
    """Emit an LLVM module from a parsed Kestrel program."""

    def __init__(
        self,
        program: Program,
        config: KestrelConfig | None = None,
        module_name: str = "kestrel",
        filename: str = "<stdin>",
    ) -> None:
        self._program = program
        self._config = config or KestrelConfig()
        self._filename = filename
        self._int = ir.IntType(self._config.build.int_width)
        self._module = ir.Module(name=module_name)
        if self._config.build.target_triple:
            self._module.triple = self._config.build.target_triple
        self._functions: dict[str, ir.Function] = {}
        self._function: ir.Function | None = None
        self._builder: ir.IRBuilder | None = None
        self._names: dict[str, ir.Value] = {}
        self._string_count = 0

    # ── Public API ─────────────────────────────────────────────

    def lower(self) -> ir.Module:
        """Build the module. Raises CompileError if something cannot be lowered."""
        try:
            for decl in self._program.declarations:
                self._declare_function(decl)
            for decl in self._program.declarations:
                self._define_function(decl)
        except _CodegenError as e:
            raise CompileError([e.error.to_diagnostic(self._filename)]) from None
        return self._module

    def emit(self) -> str:
        return str(self.lower())

    # ── Types ──────────────────────────────────────────────────

    def _lower_type(self, ty: TypeExpr, *, allow_void: bool = False) -> ir.Type:
        if isinstance(ty, NamedType):
            name = ty.name.content
            if name == "int":
                return self._int
            if name in _FIXED_INTS:
                return ir.IntType(_FIXED_INTS[name])
            if name == "void":
                if allow_void:
                    return ir.VoidType()
                raise _CodegenError(
                    ty.span.start, "`void` is only allowed as a return type or behind a pointer",
                )
            raise _CodegenError(
                ty.span.start, f"unknown type `{name}`", notes=(_KNOWN_TYPES,),
            )
        if isinstance(ty, PointerType):
            inner = ty.inner
            if isinstance(inner, NamedType) and inner.name == "void":
                return _BYTE.as_pointer()
            return self._lower_type(inner).as_pointer()
        if isinstance(ty, FunctionType):
            return self._lower_fn_type(ty.signature).as_pointer()
        raise TypeError(f"unexpected type node {ty!r}")

    def _lower_fn_type(self, sig: FnType) -> ir.FunctionType:
        if sig.ret is None:
            ret: ir.Type = ir.VoidType()
        else:
            ret = self._lower_type(sig.ret, allow_void=True)
        args = [self._lower_type(arg) for arg in sig.args]
        return ir.FunctionType(ret, args)

    # ── Functions ──────────────────────────────────────────────

    def _declare_function(self, decl: FunctionDecl) -> None:
        name = decl.name.content
        if name in self._functions:
            raise _CodegenError(decl.name.span.start, f"duplicate function `{name}`")
        fn_type = self._lower_fn_type(decl.signature)
        self._functions[name] = ir.Function(self._module, fn_type, name=name)

    def _define_function(self, decl: FunctionDecl) -> None:
        LOGGER.debug("lowering function %s", decl.name.content)
        fn = self._functions[decl.name.content]
        self._function = fn
        self._names = {}
        self._builder = ir.IRBuilder(fn.append_basic_block("entry"))
        self._lower_block(decl.body)
        if not self._builder.block.is_terminated:
            self._return_default()

    def _return_default(self) -> None:
        ret_type = self._function.function_type.return_type
        if isinstance(ret_type, ir.VoidType):
            self._builder.ret_void()
        elif isinstance(ret_type, ir.IntType):
            self._builder.ret(ir.Constant(ret_type, 0))
        else:
            self._builder.ret(ir.Constant(ret_type, None))

    # ── Statements ─────────────────────────────────────────────

    def _lower_block(self, block: Block) -> None:
        for item in block.items:
            if self._builder.block.is_terminated:
                LOGGER.debug("skipping unreachable statement at %s", block.left.span.start)
                break
            self._lower_stmt(item)

    def _lower_stmt(self, stmt: Stmt) -> None:
        if isinstance(stmt, Block):
            self._lower_block(stmt)
        elif isinstance(stmt, IfStmt):
            self._lower_if(stmt)
        elif isinstance(stmt, ReturnStmt):
            self._lower_return(stmt)
        elif isinstance(stmt, MacroStmt):
            self._lower_macro(stmt)
        else:
            raise TypeError(f"unexpected statement node {stmt!r}")

    def _lower_if(self, stmt: IfStmt) -> None:
        cond = self._truth(self._lower_expr(stmt.condition), stmt.condition)
        if stmt.otherwise is None:
            with self._builder.if_then(cond):
                self._lower_block(stmt.then)
            return
        with self._builder.if_else(cond) as (then, otherwise):
            with then:
                self._lower_block(stmt.then)
            with otherwise:
                self._lower_block(stmt.otherwise)

    def _lower_return(self, stmt: ReturnStmt) -> None:
        ret_type = self._function.function_type.return_type
        if isinstance(ret_type, ir.VoidType):
            raise _CodegenError(
                stmt.marker.span.start, "cannot return a value from a function without a return type",
            )
        value = self._lower_expr(stmt.value)
        self._builder.ret(self._coerce(value, ret_type, stmt.value))

    def _lower_macro(self, stmt: MacroStmt) -> None:
        if stmt.name.content != "args":
            raise _CodegenError(stmt.name.span.start, f"unknown macro `{stmt.name.content}!`")
        params = self._function.args
        if len(stmt.args) > len(params):
            extra = stmt.args[len(params)]
            raise _CodegenError(
                extra.span.start,
                f"`args!` names {len(stmt.args)} parameter(s) but the function takes {len(params)}",
            )
        for token, param in zip(stmt.args, params):
            name = token.content
            if name in self._names:
                raise _CodegenError(token.span.start, f"duplicate parameter name `{name}`")
            param.name = name
            self._names[name] = param

    # ── Expressions ────────────────────────────────────────────

    def _lower_expr(self, expr: Expr) -> ir.Value:
        if isinstance(expr, NumberLit):
            return self._lower_number(expr)
        if isinstance(expr, StringLit):
            return self._lower_string(expr)
        if isinstance(expr, NameExpr):
            return self._lower_name(expr)
        if isinstance(expr, BinaryExpr):
            return self._lower_binary(expr)
        raise TypeError(f"unexpected expression node {expr!r}")

    def _lower_name(self, expr: NameExpr) -> ir.Value:
        name = expr.token.content
        if name not in self._names:
            raise _CodegenError(
                expr.span.start, f"unknown name `{name}`",
                hint="parameters are named with `args!`",
            )
        return self._names[name]

    def _lower_number(self, expr: NumberLit) -> ir.Value:
        text = expr.token.content.replace("_", "")
        try:
            value = int(text)
        except ValueError:
            raise _CodegenError(
                expr.span.start, f"invalid number literal `{expr.token.content}`",
            ) from None
        return ir.Constant(self._int, value)

    def _lower_string(self, expr: StringLit) -> ir.Value:
        data = bytearray(expr.token.content.encode("utf-8") + b"\0")
        array_type = ir.ArrayType(_BYTE, len(data))
        glob = ir.GlobalVariable(self._module, array_type, name=f".str.{self._string_count}")
        self._string_count += 1
        glob.linkage = "private"
        glob.global_constant = True
        glob.initializer = ir.Constant(array_type, data)
        zero = ir.Constant(_INDEX, 0)
        return self._builder.gep(glob, [zero, zero], inbounds=True)

    def _lower_binary(self, expr: BinaryExpr) -> ir.Value:
        lhs = self._lower_expr(expr.left)
        rhs = self._lower_expr(expr.right)
        for value, node in ((lhs, expr.left), (rhs, expr.right)):
            if not isinstance(value.type, ir.IntType):
                raise _CodegenError(
                    node.span.start, f"operands of `{expr.op.content}` must be integers",
                )
        width = max(lhs.type.width, rhs.type.width)
        common = ir.IntType(width)
        lhs = self._coerce(lhs, common, expr.left)
        rhs = self._coerce(rhs, common, expr.right)

        if isinstance(expr, AddExpr):
            return self._builder.add(lhs, rhs)
        if isinstance(expr, SubExpr):
            return self._builder.sub(lhs, rhs)
        if isinstance(expr, LessExpr):
            return self._builder.icmp_signed("<", lhs, rhs)
        raise TypeError(f"unexpected binary node {expr!r}")

    def _truth(self, value: ir.Value, node: Expr) -> ir.Value:
        if isinstance(value.type, ir.IntType):
            if value.type.width == 1:
                return value
            return self._builder.icmp_signed("!=", value, ir.Constant(value.type, 0))
        if isinstance(value.type, ir.PointerType):
            return self._builder.icmp_unsigned("!=", value, ir.Constant(value.type, None))
        raise _CodegenError(node.span.start, "condition must be an integer or pointer")

    def _coerce(self, value: ir.Value, target: ir.Type, node: Expr) -> ir.Value:
        if value.type == target:
            return value
        if isinstance(value.type, ir.IntType) and isinstance(target, ir.IntType):
            if value.type.width > target.width:
                return self._builder.trunc(value, target)
            if value.type.width == 1:
                return self._builder.zext(value, target)
            return self._builder.sext(value, target)
        if isinstance(value.type, ir.PointerType) and isinstance(target, ir.PointerType):
            return self._builder.bitcast(value, target)
        raise _CodegenError(node.span.start, f"cannot convert {value.type} to {target}")
