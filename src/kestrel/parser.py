"""Parser for the Kestrel language.

Recursive descent over the tokenizer primitives. Every rule returns an
:data:`~kestrel.result.Outcome`: ``Matched`` with the node, ``NO_MATCH``
when its leading token is absent (cursor untouched), or ``Failed`` once
it has committed and the rest of the input is malformed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from kestrel.ast_nodes import (
    AddExpr,
    BinaryExpr,
    Block,
    Declaration,
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
from kestrel.errors import CompileError, Error
from kestrel.result import NO_MATCH, Failed, Matched, Outcome
from kestrel.strings import parse_string
from kestrel.tokenizer import Tokenizer
from kestrel.tokens import Token

LOGGER = logging.getLogger(__name__)

Rule = Callable[[Tokenizer], Outcome]


def char_is_ident(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def char_is_number(ch: str) -> bool:
    return ch.isnumeric() or ch == "_"


# ── Protocol helpers ─────────────────────────────────────────────


def required(tok: Tokenizer, outcome: Outcome, message: str) -> Outcome:
    """Turn a no-match after a commitment point into a hard failure.

    A failure that already carries its own location is passed through.
    """
    if outcome is NO_MATCH:
        return Failed(Error(tok.location(), message))
    return outcome


def optional(outcome: Outcome) -> Outcome:
    """Treat a no-match as a successful ``None``; failures still propagate."""
    if outcome is NO_MATCH:
        return Matched(None)
    return outcome


# ── Declarations ─────────────────────────────────────────────────


def parse_program(tok: Tokenizer) -> Outcome[Program]:
    declarations: list[Declaration] = []
    while tok.has_more_tokens():
        decl = parse_decl(tok)
        if decl is NO_MATCH:
            return Failed(Error(tok.location(), "expected declaration"))
        if isinstance(decl, Failed):
            return decl
        declarations.append(decl.value)
    return Matched(Program(declarations))


def parse_decl(tok: Tokenizer) -> Outcome[Declaration]:
    name = tok.consume_while(char_is_ident)
    if name is None:
        return NO_MATCH
    if tok.peek_str("(") is None:
        return Failed(Error(tok.location(), f"expected function type after `{name}`"))

    signature = required(tok, parse_fn_type(tok), "expected function type")
    if isinstance(signature, Failed):
        return signature
    body = required(tok, parse_block(tok), "expected function body")
    if isinstance(body, Failed):
        return body
    return Matched(FunctionDecl(name, signature.value, body.value))


# ── Types ────────────────────────────────────────────────────────


def parse_type(tok: Tokenizer) -> Outcome[TypeExpr]:
    func = parse_fn_type(tok)
    if isinstance(func, Failed):
        return func
    if isinstance(func, Matched):
        return Matched(FunctionType(func.value))

    word = tok.consume_while(char_is_ident)
    if word is None:
        return NO_MATCH
    out: TypeExpr = NamedType(word)
    star = tok.consume("*")
    while star is not None:
        out = PointerType(out, star)
        star = tok.consume("*")
    return Matched(out)


def parse_fn_type(tok: Tokenizer) -> Outcome[FnType]:
    left = tok.consume("(")
    if left is None:
        return NO_MATCH

    args: list[TypeExpr] = []
    while tok.has_more_tokens() and tok.peek_str(")") is None:
        arg = required(tok, parse_type(tok), "expected type")
        if isinstance(arg, Failed):
            return arg
        args.append(arg.value)
        if tok.consume(",") is None:
            break
    right = tok.expect(")")
    if isinstance(right, Failed):
        return right

    ret = optional(parse_type(tok))
    if isinstance(ret, Failed):
        return ret
    return Matched(FnType(args, ret.value, left, right.value))


# ── Statements ───────────────────────────────────────────────────


def parse_stmt(tok: Tokenizer) -> Outcome[Stmt]:
    for rule in (parse_block, parse_if, parse_return, parse_macro):
        outcome = rule(tok)
        if outcome is not NO_MATCH:
            return outcome
    return NO_MATCH


def parse_if(tok: Tokenizer) -> Outcome[IfStmt]:
    keyword = tok.consume_word("if")
    if keyword is None:
        return NO_MATCH

    condition = required(tok, parse_expr(tok), "expected condition")
    if isinstance(condition, Failed):
        return condition
    then = required(tok, parse_block(tok), "expected block")
    if isinstance(then, Failed):
        return then

    otherwise = None
    if tok.consume_word("else") is not None:
        block = required(tok, parse_block(tok), "expected block")
        if isinstance(block, Failed):
            return block
        otherwise = block.value
    return Matched(IfStmt(keyword, condition.value, then.value, otherwise))


def parse_return(tok: Tokenizer) -> Outcome[ReturnStmt]:
    marker = tok.consume(":")
    if marker is None:
        return NO_MATCH
    value = required(tok, parse_expr(tok), "expected return value")
    if isinstance(value, Failed):
        return value
    return Matched(ReturnStmt(marker, value.value))


def parse_macro(tok: Tokenizer) -> Outcome[MacroStmt]:
    """``name!`` glued together, then one or more comma-separated names."""
    word = tok.peek_while(char_is_ident)
    if word is None or tok.char_at(word.end) != "!":
        return NO_MATCH
    name = tok.consume_while(char_is_ident)
    bang = tok.consume("!")

    args: list[Token] = []
    while True:
        arg = tok.consume_while(char_is_ident)
        if arg is None:
            return Failed(Error(tok.location(), f"expected name after `{name}!`"))
        args.append(arg)
        if tok.consume(",") is None:
            break
    return Matched(MacroStmt(name, bang, args))


def parse_block(tok: Tokenizer) -> Outcome[Block]:
    left = tok.consume("{")
    if left is None:
        return NO_MATCH

    items: list[Stmt] = []
    while tok.has_more_tokens() and tok.peek_str("}") is None:
        item = required(tok, parse_stmt(tok), "expected statement in block")
        if isinstance(item, Failed):
            return item
        items.append(item.value)
    right = tok.expect("}")
    if isinstance(right, Failed):
        return right
    return Matched(Block(left, items, right.value))


# ── Expressions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class PrecedenceLevel:
    """Operators sharing one binding strength, mapped to their node type."""

    name: str
    operators: Mapping[str, type[BinaryExpr]]


# Loosest first.
COMPARISON = PrecedenceLevel("comparison", {"<": LessExpr})
ADDITIVE = PrecedenceLevel("additive", {"+": AddExpr, "-": SubExpr})

EXPR_LEVELS: tuple[PrecedenceLevel, ...] = (COMPARISON, ADDITIVE)


def _consume_operator(
    tok: Tokenizer, level: PrecedenceLevel,
) -> tuple[Token, type[BinaryExpr]] | None:
    for lexeme, node in level.operators.items():
        op = tok.consume(lexeme)
        if op is not None:
            return op, node
    return None


def parse_binary(
    tok: Tokenizer, levels: Sequence[PrecedenceLevel], operand: Rule,
) -> Outcome[Expr]:
    """Left-associative precedence climbing over ``levels``.

    Each level parses its operands at the next tighter level; the
    tightest level's operands come from ``operand``.
    """
    if not levels:
        return operand(tok)
    level, tighter = levels[0], levels[1:]

    lhs = parse_binary(tok, tighter, operand)
    if not isinstance(lhs, Matched):
        return lhs
    out = lhs.value

    expected = " or ".join(f"`{op}`" for op in level.operators)
    while True:
        matched = _consume_operator(tok, level)
        if matched is None:
            return Matched(out)
        op, node = matched

        rhs = required(
            tok, parse_binary(tok, tighter, operand),
            f"expected operand after {expected}",
        )
        if isinstance(rhs, Failed):
            return rhs
        out = node(out, op, rhs.value)


def parse_expr(tok: Tokenizer) -> Outcome[Expr]:
    return parse_binary(tok, EXPR_LEVELS, parse_primary)


def parse_primary(tok: Tokenizer) -> Outcome[Expr]:
    first = tok.peek()
    if first is not None and first.isnumeric():
        return Matched(NumberLit(tok.consume_while(char_is_number)))

    string = parse_string(tok)
    if isinstance(string, Matched):
        return Matched(StringLit(string.value))
    if isinstance(string, Failed):
        return string

    # Anything else made of identifier characters, `_` included.
    name = tok.consume_while(char_is_ident)
    if name is not None:
        return Matched(NameExpr(name))
    return NO_MATCH


# ── Entry points ─────────────────────────────────────────────────


class Parser:
    """Parses a complete Kestrel source text into a Program."""

    def __init__(self, source: str, filename: str = "<stdin>") -> None:
        self.source = source
        self.filename = filename

    def parse(self) -> Program:
        """Parse the whole source. Raises CompileError on the first fatal error."""
        tok = Tokenizer(self.source)
        outcome = parse_program(tok)
        if isinstance(outcome, Failed):
            LOGGER.debug("parse of %s failed at %s", self.filename, outcome.error.location)
            raise CompileError([outcome.error.to_diagnostic(self.filename)])
        LOGGER.debug(
            "parsed %d declaration(s) from %s",
            len(outcome.value.declarations), self.filename,
        )
        return outcome.value


def parse_source(source: str, filename: str = "<stdin>") -> Program:
    return Parser(source, filename).parse()
