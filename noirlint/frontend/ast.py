"""Syntax tree produced by the Noir parser.

Only the structure the analyzer needs is kept: items with their names,
visibility and spans, and function bodies as expression trees whose
`PathExpression` and `MethodCallExpression` nodes carry the names that may
refer to other functions. Types and patterns are skipped by the parser.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, fields

from noirlint.core.models import SourceSpan, Visibility


@dataclass(frozen=True)
class Node:
    span: SourceSpan

    def iter_child_nodes(self) -> Iterator[Node]:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Node):
                yield value
            elif isinstance(value, tuple):
                for item in value:
                    if isinstance(item, Node):
                        yield item


def walk(node: Node) -> Iterator[Node]:
    """Yield `node` and all its descendants in source order, parents first.

    Uses an explicit stack, so arbitrarily deep trees such as long operator
    chains are traversed without recursion.
    """
    pending = [node]
    while pending:
        current = pending.pop()
        yield current
        pending.extend(reversed(tuple(current.iter_child_nodes())))


# Expressions


@dataclass(frozen=True)
class Expression(Node):
    pass


@dataclass(frozen=True)
class Literal(Expression):
    text: str


@dataclass(frozen=True)
class PathExpression(Expression):
    segments: tuple[str, ...]

    @property
    def text(self) -> str:
        return "::".join(self.segments)


@dataclass(frozen=True)
class CallExpression(Expression):
    function: Expression
    arguments: tuple[Expression, ...]
    is_macro: bool = False


@dataclass(frozen=True)
class MethodCallExpression(Expression):
    receiver: Expression
    method_name: str
    arguments: tuple[Expression, ...]
    name_span: SourceSpan | None = None


@dataclass(frozen=True)
class MemberAccessExpression(Expression):
    lhs: Expression
    name: str


@dataclass(frozen=True)
class IndexExpression(Expression):
    collection: Expression
    index: Expression


@dataclass(frozen=True)
class CastExpression(Expression):
    lhs: Expression


@dataclass(frozen=True)
class PrefixExpression(Expression):
    operator: str
    rhs: Expression


@dataclass(frozen=True)
class InfixExpression(Expression):
    lhs: Expression
    operator: str
    rhs: Expression


@dataclass(frozen=True)
class ArrayLiteral(Expression):
    elements: tuple[Expression, ...]


@dataclass(frozen=True)
class TupleExpression(Expression):
    elements: tuple[Expression, ...]


@dataclass(frozen=True)
class ConstructorExpression(Expression):
    type_name: str
    fields: tuple[Expression, ...]


@dataclass(frozen=True)
class LambdaExpression(Expression):
    body: Expression


@dataclass(frozen=True)
class BlockExpression(Expression):
    statements: tuple[Node, ...] = ()


@dataclass(frozen=True)
class IfExpression(Expression):
    condition: Expression
    consequence: Expression
    alternative: Expression | None = None


@dataclass(frozen=True)
class ForExpression(Expression):
    iterable: Expression
    body: Expression


@dataclass(frozen=True)
class WhileExpression(Expression):
    condition: Expression
    body: Expression


@dataclass(frozen=True)
class MatchExpression(Expression):
    scrutinee: Expression
    arms: tuple[Expression, ...]


@dataclass(frozen=True)
class QuoteExpression(Expression):
    pass


# Statements


@dataclass(frozen=True)
class LetStatement(Node):
    value: Expression | None


@dataclass(frozen=True)
class AssignStatement(Node):
    target: Expression
    operator: str
    value: Expression


@dataclass(frozen=True)
class ReturnStatement(Node):
    value: Expression | None = None


@dataclass(frozen=True)
class ExpressionStatement(Node):
    expression: Expression


# Items


@dataclass(frozen=True)
class Item(Node):
    pass


@dataclass(frozen=True)
class FunctionItem(Item):
    """A `fn` item. `span` covers the name token."""

    name: str
    visibility: Visibility
    attributes: tuple[str, ...] = ()
    modifiers: tuple[str, ...] = ()
    body: BlockExpression | None = None


@dataclass(frozen=True)
class ModuleItem(Item):
    """`mod name;` when `items` is None, `mod name { ... }` otherwise."""

    name: str
    visibility: Visibility
    items: tuple[Item, ...] | None = None


@dataclass(frozen=True)
class UseEntry:
    path: tuple[str, ...]
    alias: str | None = None
    is_glob: bool = False

    @property
    def bound_name(self) -> str | None:
        if self.is_glob:
            return None
        if self.alias is not None:
            return self.alias
        if self.path[-1] == "self":
            return self.path[-2] if len(self.path) > 1 else None
        return self.path[-1]


@dataclass(frozen=True)
class UseItem(Item):
    visibility: Visibility
    entries: tuple[UseEntry, ...] = ()


@dataclass(frozen=True)
class ImplItem(Item):
    """`impl Type { ... }` or `impl Trait for Type { ... }`."""

    type_name: str
    type_text: str
    trait_text: str | None = None
    functions: tuple[FunctionItem, ...] = ()


@dataclass(frozen=True)
class TraitItem(Item):
    name: str
    visibility: Visibility
    functions: tuple[FunctionItem, ...] = ()


@dataclass(frozen=True)
class GlobalItem(Item):
    """`global NAME: Type = value;`. `span` covers the name token."""

    name: str
    visibility: Visibility
    value: Expression | None = None


@dataclass(frozen=True)
class ComptimeItem(Item):
    """A top-level `comptime { ... }` block, run by the compiler."""

    body: BlockExpression


@dataclass(frozen=True)
class ParsedModule:
    """All items of one source file."""

    file_path: str
    source: str
    items: tuple[Item, ...] = field(default_factory=tuple)
