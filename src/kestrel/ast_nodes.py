"""AST node definitions for the Kestrel language."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from kestrel.source import Span
from kestrel.tokens import Token

# ── Type expressions ─────────────────────────────────────────────


@dataclass(frozen=True)
class NamedType:
    name: Token

    @property
    def span(self) -> Span:
        return self.name.span


@dataclass(frozen=True)
class PointerType:
    inner: TypeExpr
    star: Token

    @property
    def span(self) -> Span:
        return Span(self.inner.span.start, self.star.span.end)


@dataclass(frozen=True)
class FnType:
    """``(args...) ret``; ``ret`` is None when no return type is written."""

    args: list[TypeExpr]
    ret: Optional[TypeExpr]
    left: Token
    right: Token

    @property
    def span(self) -> Span:
        end = self.ret.span.end if self.ret is not None else self.right.span.end
        return Span(self.left.span.start, end)


@dataclass(frozen=True)
class FunctionType:
    signature: FnType

    @property
    def span(self) -> Span:
        return self.signature.span


TypeExpr = Union[NamedType, PointerType, FunctionType]


# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class NumberLit:
    token: Token

    @property
    def span(self) -> Span:
        return self.token.span


@dataclass(frozen=True)
class StringLit:
    token: Token

    @property
    def span(self) -> Span:
        return self.token.span


@dataclass(frozen=True)
class NameExpr:
    token: Token

    @property
    def span(self) -> Span:
        return self.token.span


@dataclass(frozen=True)
class BinaryExpr:
    left: Expr
    op: Token
    right: Expr

    @property
    def span(self) -> Span:
        return Span(self.left.span.start, self.right.span.end)


class AddExpr(BinaryExpr):
    pass


class SubExpr(BinaryExpr):
    pass


class LessExpr(BinaryExpr):
    pass


Expr = Union[NumberLit, StringLit, NameExpr, BinaryExpr]


# ── Statements ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Block:
    left: Token
    items: list[Stmt]
    right: Token

    @property
    def span(self) -> Span:
        return Span(self.left.span.start, self.right.span.end)


@dataclass(frozen=True)
class IfStmt:
    keyword: Token
    condition: Expr
    then: Block
    otherwise: Optional[Block] = None


@dataclass(frozen=True)
class ReturnStmt:
    marker: Token
    value: Expr


@dataclass(frozen=True)
class MacroStmt:
    """``name! a, b, ...``; `args!` names the enclosing function's parameters."""

    name: Token
    bang: Token
    args: list[Token]

    @property
    def span(self) -> Span:
        end = self.args[-1].span.end if self.args else self.bang.span.end
        return Span(self.name.span.start, end)


Stmt = Union[Block, IfStmt, ReturnStmt, MacroStmt]


# ── Declarations ─────────────────────────────────────────────────


@dataclass(frozen=True)
class FunctionDecl:
    name: Token
    signature: FnType
    body: Block


Declaration = FunctionDecl


@dataclass(frozen=True)
class Program:
    declarations: list[Declaration]
