"""Recursive descent parser for Noir source files.

Items are parsed fully enough to know every function's name, visibility,
attributes and body, plus the initializers of globals and top-level
`comptime` blocks. Struct, enum and type alias items are skipped, as are
types and patterns inside function bodies: none of them can name a function
that gets executed.
"""

from __future__ import annotations

import logging
from pathlib import Path

from noirlint.core.errors import ParseError
from noirlint.core.models import SourceSpan, Visibility
from noirlint.frontend import ast
from noirlint.frontend.lexer import Token, TokenKind, tokenize

logger = logging.getLogger(__name__)

OPENERS = {"(": ")", "[": "]", "{": "}"}
CLOSERS = {")", "]", "}"}

FUNCTION_MODIFIERS = {"comptime", "unconstrained", "unsafe"}

ASSIGN_OPERATORS = {"=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "<<=", ">>="}

BINARY_PRECEDENCE = {
    "..": 1,
    "..=": 1,
    "||": 2,
    "&&": 3,
    "==": 4,
    "!=": 4,
    "<": 4,
    ">": 4,
    "<=": 4,
    ">=": 4,
    "|": 5,
    "^": 6,
    "&": 7,
    "<<": 8,
    ">>": 8,
    "+": 9,
    "-": 9,
    "*": 10,
    "/": 10,
    "%": 10,
}
CAST_PRECEDENCE = 11

# Tokens after which a range operator has no right-hand side, as in `a[1..]`.
RANGE_TERMINATORS = {")", "]", "}", ",", ";", "{"}

BLOCK_LIKE_KEYWORDS = {"if", "for", "while", "loop", "match"}


class Parser:
    def __init__(self, tokens: list[Token], file_path: str, source: str) -> None:
        self.tokens = tokens
        self.file_path = file_path
        self.source = source
        self.index = 0
        self.previous = tokens[0]

    # Token helpers

    def peek(self, offset: int = 0) -> Token:
        index = min(self.index + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def advance(self) -> Token:
        token = self.tokens[self.index]
        if token.kind is not TokenKind.EOF:
            self.index += 1
        self.previous = token
        return token

    def at_punct(self, text: str, offset: int = 0) -> bool:
        return self.peek(offset).is_punct(text)

    def at_keyword(self, text: str, offset: int = 0) -> bool:
        return self.peek(offset).is_keyword(text)

    def eat_punct(self, text: str) -> bool:
        if self.at_punct(text):
            self.advance()
            return True
        return False

    def eat_keyword(self, text: str) -> bool:
        if self.at_keyword(text):
            self.advance()
            return True
        return False

    def expect_punct(self, text: str) -> Token:
        if not self.at_punct(text):
            raise self.error(f"expected '{text}'")
        return self.advance()

    def expect_keyword(self, text: str) -> Token:
        if not self.at_keyword(text):
            raise self.error(f"expected '{text}'")
        return self.advance()

    def expect_ident(self) -> Token:
        if self.peek().kind is not TokenKind.IDENT:
            raise self.error("expected identifier")
        return self.advance()

    def error(self, message: str) -> ParseError:
        token = self.peek()
        found = token.text or "end of file"
        return ParseError(f"{message}, found '{found}'", self.file_path, token.line, token.column)

    def span(self, start: Token, end: Token | None = None) -> SourceSpan:
        end = end or self.previous
        return SourceSpan(
            file_path=self.file_path,
            line=start.line,
            column=start.column,
            end_line=end.end_line,
            end_column=end.end_column,
        )

    # Skipping

    def skip_group(self) -> None:
        """Skip a balanced `(...)`, `[...]` or `{...}` group starting at the current token."""
        depth = 0
        while True:
            token = self.peek()
            if token.kind is TokenKind.EOF:
                raise self.error("unbalanced delimiters")
            self.advance()
            if token.kind is TokenKind.PUNCT:
                if token.text in OPENERS:
                    depth += 1
                elif token.text in CLOSERS:
                    depth -= 1
                    if depth == 0:
                        return

    def skip_generics(self) -> None:
        """Skip a balanced `<...>` group starting at the current token."""
        depth = 0
        while True:
            token = self.peek()
            if token.kind is TokenKind.EOF:
                raise self.error("unbalanced generic arguments")
            if token.kind is TokenKind.PUNCT:
                if token.text in OPENERS:
                    self.skip_group()
                    continue
                if token.text == "<":
                    depth += 1
                elif token.text == ">":
                    depth -= 1
                elif token.text == ">>":
                    depth -= 2
                elif token.text == ">=":
                    depth -= 1
            self.advance()
            if depth <= 0:
                return

    def skip_until(self, *stops: str) -> list[Token]:
        """Skip tokens until one of `stops` appears outside any group or a closer ends the group."""
        skipped: list[Token] = []
        while True:
            token = self.peek()
            if token.kind is TokenKind.EOF:
                raise self.error(f"expected one of {', '.join(repr(s) for s in stops)}")
            if token.text in stops and token.kind in (TokenKind.PUNCT, TokenKind.IDENT):
                return skipped
            if token.kind is TokenKind.PUNCT and token.text in CLOSERS:
                return skipped
            if token.kind is TokenKind.PUNCT and token.text in OPENERS:
                start = self.index
                self.skip_group()
                skipped.extend(self.tokens[start : self.index])
                continue
            skipped.append(self.advance())

    def skip_item_rest(self) -> None:
        """Skip the remainder of an item ending in `;` or in a braced body."""
        while True:
            token = self.peek()
            if token.kind is TokenKind.EOF:
                raise self.error("unexpected end of file in item")
            if token.is_punct(";"):
                self.advance()
                return
            if token.is_punct("{"):
                self.skip_group()
                return
            if token.kind is TokenKind.PUNCT and token.text in ("(", "["):
                self.skip_group()
                continue
            if token.kind is TokenKind.PUNCT and token.text in CLOSERS:
                raise self.error("unexpected closing delimiter")
            self.advance()

    # Items

    def parse_module(self) -> ast.ParsedModule:
        items = self.parse_items(closed_by_brace=False)
        return ast.ParsedModule(file_path=self.file_path, source=self.source, items=tuple(items))

    def parse_items(self, closed_by_brace: bool) -> list[ast.Item]:
        items: list[ast.Item] = []
        while True:
            token = self.peek()
            if token.kind is TokenKind.EOF:
                if closed_by_brace:
                    raise self.error("expected '}'")
                return items
            if closed_by_brace and token.is_punct("}"):
                self.advance()
                return items
            item = self.parse_item()
            if item is not None:
                items.append(item)

    def parse_attributes(self) -> tuple[str, ...]:
        names: list[str] = []
        while self.at_punct("#"):
            self.advance()
            self.eat_punct("!")
            if not self.at_punct("["):
                raise self.error("expected '[' after '#'")
            start = self.index
            self.skip_group()
            for token in self.tokens[start : self.index]:
                if token.kind is TokenKind.IDENT:
                    names.append(token.text)
                    break
        return tuple(names)

    def parse_visibility(self) -> Visibility:
        if not self.eat_keyword("pub"):
            return Visibility.PRIVATE
        if self.at_punct("(") and self.at_keyword("crate", 1) and self.at_punct(")", 2):
            self.advance()
            self.advance()
            self.advance()
            return Visibility.CRATE_VISIBLE
        return Visibility.PUBLIC

    def parse_modifiers(self) -> tuple[str, ...]:
        modifiers: list[str] = []
        while self.peek().kind is TokenKind.IDENT and self.peek().text in FUNCTION_MODIFIERS:
            if not self.at_keyword("fn", 1) and self.peek(1).text not in FUNCTION_MODIFIERS:
                break
            modifiers.append(self.advance().text)
        return tuple(modifiers)

    def parse_item(self) -> ast.Item | None:
        attributes = self.parse_attributes()
        if self.eat_punct(";"):
            return None
        if self.peek().kind is TokenKind.EOF or self.at_punct("}"):
            # Inner attributes with nothing after them.
            return None
        visibility = self.parse_visibility()
        modifiers = self.parse_modifiers()
        token = self.peek()

        if token.is_keyword("fn"):
            return self.parse_function(visibility, attributes, modifiers)
        if token.is_keyword("mod") or token.is_keyword("contract"):
            return self.parse_module_item(visibility)
        if token.is_keyword("use"):
            return self.parse_use(visibility)
        if token.is_keyword("impl"):
            return self.parse_impl()
        if token.is_keyword("trait"):
            return self.parse_trait(visibility)
        if token.is_keyword("comptime") and self.at_punct("{", 1):
            start = self.advance()
            body = self.parse_block()
            return ast.ComptimeItem(span=self.span(start, start), body=body)
        if token.is_keyword("comptime") and (
            self.at_keyword("global", 1) or self.at_keyword("mut", 1)
        ):
            self.advance()
            self.eat_keyword("mut")
            token = self.peek()
        if token.is_keyword("global"):
            return self.parse_global(visibility)
        if token.kind is TokenKind.IDENT and token.text in ("struct", "enum", "type", "comptime"):
            self.skip_item_rest()
            return None
        raise self.error("expected item")

    def parse_function(
        self,
        visibility: Visibility,
        attributes: tuple[str, ...],
        modifiers: tuple[str, ...],
    ) -> ast.FunctionItem:
        self.expect_keyword("fn")
        name = self.expect_ident()
        if self.at_punct("<"):
            self.skip_generics()
        if not self.at_punct("("):
            raise self.error("expected '(' after function name")
        self.skip_group()
        # Return type and where clause.
        self.skip_until("{", ";")
        body = None
        if not self.eat_punct(";"):
            body = self.parse_block()
        return ast.FunctionItem(
            span=self.span(name, name),
            name=name.text,
            visibility=visibility,
            attributes=attributes,
            modifiers=modifiers,
            body=body,
        )

    def parse_global(self, visibility: Visibility) -> ast.GlobalItem:
        self.expect_keyword("global")
        name = self.expect_ident()
        # Type annotation.
        self.skip_until("=", ";")
        value = None
        if self.eat_punct("="):
            value = self.parse_expression()
        self.expect_punct(";")
        return ast.GlobalItem(
            span=self.span(name, name), name=name.text, visibility=visibility, value=value
        )

    def parse_module_item(self, visibility: Visibility) -> ast.ModuleItem:
        keyword = self.advance()
        name = self.expect_ident()
        if keyword.text == "mod" and self.eat_punct(";"):
            return ast.ModuleItem(span=self.span(name, name), name=name.text, visibility=visibility)
        self.expect_punct("{")
        items = self.parse_items(closed_by_brace=True)
        return ast.ModuleItem(
            span=self.span(name, name), name=name.text, visibility=visibility, items=tuple(items)
        )

    def parse_use(self, visibility: Visibility) -> ast.UseItem:
        start = self.expect_keyword("use")
        entries: list[ast.UseEntry] = []
        self.eat_punct("::")
        self.parse_use_tree((), entries)
        self.expect_punct(";")
        return ast.UseItem(span=self.span(start), visibility=visibility, entries=tuple(entries))

    def parse_use_tree(self, prefix: tuple[str, ...], entries: list[ast.UseEntry]) -> None:
        if self.eat_punct("{"):
            while not self.eat_punct("}"):
                self.parse_use_tree(prefix, entries)
                if not self.eat_punct(","):
                    self.expect_punct("}")
                    break
            return
        if self.eat_punct("*"):
            entries.append(ast.UseEntry(path=prefix, is_glob=True))
            return
        segments = list(prefix)
        while True:
            segments.append(self.expect_ident().text)
            if not self.eat_punct("::"):
                break
            if self.at_punct("{") or self.at_punct("*"):
                self.parse_use_tree(tuple(segments), entries)
                return
        alias = None
        if self.eat_keyword("as"):
            alias = self.expect_ident().text
        entries.append(ast.UseEntry(path=tuple(segments), alias=alias))

    def parse_impl(self) -> ast.ImplItem:
        start = self.expect_keyword("impl")
        if self.at_punct("<"):
            self.skip_generics()
        header = self.skip_until("{", "where")
        if self.at_keyword("where"):
            self.skip_until("{")
        trait_tokens: list[Token] = []
        type_tokens = header
        for position, token in enumerate(header):
            if token.is_keyword("for"):
                trait_tokens = header[:position]
                type_tokens = header[position + 1 :]
                break
        if not type_tokens:
            raise self.error("expected type in impl header")
        self.expect_punct("{")
        functions = self.parse_associated_functions()
        return ast.ImplItem(
            span=self.span(start, start),
            type_name=_type_name(type_tokens),
            type_text=_render_tokens(type_tokens),
            trait_text=_render_tokens(trait_tokens) if trait_tokens else None,
            functions=tuple(functions),
        )

    def parse_trait(self, visibility: Visibility) -> ast.TraitItem:
        self.expect_keyword("trait")
        name = self.expect_ident()
        self.skip_until("{", ";")
        if self.eat_punct(";"):
            return ast.TraitItem(span=self.span(name, name), name=name.text, visibility=visibility)
        self.expect_punct("{")
        functions = self.parse_associated_functions()
        return ast.TraitItem(
            span=self.span(name, name),
            name=name.text,
            visibility=visibility,
            functions=tuple(functions),
        )

    def parse_associated_functions(self) -> list[ast.FunctionItem]:
        """Parse the body of an impl or trait block up to and including its `}`."""
        functions: list[ast.FunctionItem] = []
        while not self.eat_punct("}"):
            if self.peek().kind is TokenKind.EOF:
                raise self.error("expected '}'")
            attributes = self.parse_attributes()
            visibility = self.parse_visibility()
            modifiers = self.parse_modifiers()
            if self.at_keyword("fn"):
                functions.append(self.parse_function(visibility, attributes, modifiers))
            elif self.eat_punct(";"):
                continue
            else:
                self.skip_item_rest()
        return functions

    # Statements

    def parse_block(self) -> ast.BlockExpression:
        start = self.expect_punct("{")
        statements: list[ast.Node] = []
        while not self.at_punct("}"):
            if self.peek().kind is TokenKind.EOF:
                raise self.error("expected '}'")
            if self.eat_punct(";"):
                continue
            statements.append(self.parse_statement())
        self.advance()
        return ast.BlockExpression(span=self.span(start), statements=tuple(statements))

    def parse_statement(self) -> ast.Node:
        self.parse_attributes()
        start = self.peek()

        if start.is_keyword("comptime") and (self.at_keyword("let", 1) or self.at_keyword("for", 1)):
            self.advance()
            start = self.peek()
        if start.is_keyword("let"):
            return self.parse_let()
        if start.is_keyword("return"):
            self.advance()
            value = None
            if not (self.at_punct(";") or self.at_punct("}")):
                value = self.parse_expression()
            self.eat_punct(";")
            return ast.ReturnStatement(span=self.span(start), value=value)
        if start.is_keyword("constrain"):
            self.advance()
            expression = self.parse_expression()
            self.eat_punct(";")
            return ast.ExpressionStatement(span=self.span(start), expression=expression)

        if self.at_block_like():
            expression = self.parse_primary(no_struct=False)
            if not (self.at_punct(".") or self.at_punct("?")):
                self.eat_punct(";")
                return ast.ExpressionStatement(span=self.span(start), expression=expression)
            expression = self.parse_postfix(expression, start)
            expression = self.parse_binary(0, no_struct=False, lhs=expression, start=start)
        else:
            expression = self.parse_expression()

        if self.peek().kind is TokenKind.PUNCT and self.peek().text in ASSIGN_OPERATORS:
            operator = self.advance().text
            value = self.parse_expression()
            self.end_statement()
            return ast.AssignStatement(
                span=self.span(start), target=expression, operator=operator, value=value
            )
        self.end_statement()
        return ast.ExpressionStatement(span=self.span(start), expression=expression)

    def end_statement(self) -> None:
        if self.eat_punct(";") or self.at_punct("}"):
            return
        raise self.error("expected ';'")

    def at_block_like(self) -> bool:
        token = self.peek()
        if token.is_punct("{"):
            return True
        if token.kind is not TokenKind.IDENT:
            return False
        if token.text in BLOCK_LIKE_KEYWORDS:
            return True
        return token.text in ("unsafe", "comptime") and self.at_punct("{", 1)

    def parse_let(self) -> ast.LetStatement:
        start = self.expect_keyword("let")
        self.skip_until("=", ";")
        value = None
        if self.eat_punct("="):
            value = self.parse_expression()
        self.end_statement()
        return ast.LetStatement(span=self.span(start), value=value)

    # Expressions

    def parse_expression(self, no_struct: bool = False) -> ast.Expression:
        return self.parse_binary(0, no_struct)

    def parse_binary(
        self,
        min_precedence: int,
        no_struct: bool,
        lhs: ast.Expression | None = None,
        start: Token | None = None,
    ) -> ast.Expression:
        start = start or self.peek()
        if lhs is None:
            lhs = self.parse_unary(no_struct)
        while True:
            token = self.peek()
            if token.is_keyword("as") and CAST_PRECEDENCE > min_precedence:
                self.advance()
                self.skip_type()
                lhs = ast.CastExpression(span=self.span(start), lhs=lhs)
                continue
            if token.kind is not TokenKind.PUNCT:
                return lhs
            precedence = BINARY_PRECEDENCE.get(token.text)
            if precedence is None or precedence <= min_precedence:
                return lhs
            operator = self.advance().text
            if operator in ("..", "..=") and self.peek().text in RANGE_TERMINATORS:
                rhs: ast.Expression = ast.Literal(span=self.span(token), text="")
            else:
                rhs = self.parse_binary(precedence, no_struct)
            lhs = ast.InfixExpression(span=self.span(start), lhs=lhs, operator=operator, rhs=rhs)

    def skip_type(self) -> None:
        while self.eat_punct("&") or self.eat_keyword("mut"):
            pass
        if self.peek().kind is TokenKind.PUNCT and self.peek().text in ("(", "["):
            self.skip_group()
            return
        self.expect_ident()
        while self.eat_punct("::"):
            self.expect_ident()
        if self.at_punct("<"):
            self.skip_generics()

    def parse_unary(self, no_struct: bool) -> ast.Expression:
        start = self.peek()
        if start.kind is TokenKind.PUNCT and start.text in ("-", "!", "*", "&"):
            self.advance()
            if start.text == "&":
                self.eat_keyword("mut")
            rhs = self.parse_unary(no_struct)
            return ast.PrefixExpression(span=self.span(start), operator=start.text, rhs=rhs)
        if start.is_punct("@") and self.at_punct("[", 1):
            self.advance()
        expression = self.parse_primary(no_struct)
        return self.parse_postfix(expression, start)

    def parse_postfix(self, expression: ast.Expression, start: Token) -> ast.Expression:
        while True:
            if self.at_punct("("):
                arguments = self.parse_arguments()
                expression = ast.CallExpression(
                    span=self.span(start), function=expression, arguments=arguments
                )
            elif self.at_punct("."):
                self.advance()
                name = self.peek()
                if name.kind is TokenKind.INT:
                    self.advance()
                    expression = ast.MemberAccessExpression(
                        span=self.span(start), lhs=expression, name=name.text
                    )
                    continue
                self.expect_ident()
                if self.at_punct("::") and self.at_punct("<", 1):
                    self.advance()
                    self.skip_generics()
                if self.at_punct("("):
                    arguments = self.parse_arguments()
                    expression = ast.MethodCallExpression(
                        span=self.span(start),
                        receiver=expression,
                        method_name=name.text,
                        arguments=arguments,
                        name_span=self.span(name, name),
                    )
                else:
                    expression = ast.MemberAccessExpression(
                        span=self.span(start), lhs=expression, name=name.text
                    )
            elif self.at_punct("["):
                self.advance()
                index = self.parse_expression()
                self.expect_punct("]")
                expression = ast.IndexExpression(
                    span=self.span(start), collection=expression, index=index
                )
            elif self.at_punct("?"):
                self.advance()
            else:
                return expression

    def parse_arguments(self) -> tuple[ast.Expression, ...]:
        self.expect_punct("(")
        return self.parse_sequence(")")

    def parse_sequence(self, closer: str) -> tuple[ast.Expression, ...]:
        """Parse comma separated expressions up to and including `closer`."""
        elements: list[ast.Expression] = []
        while not self.eat_punct(closer):
            elements.append(self.parse_expression())
            if not self.eat_punct(","):
                self.expect_punct(closer)
                break
        return tuple(elements)

    def parse_primary(self, no_struct: bool) -> ast.Expression:
        start = self.peek()

        if start.kind in (TokenKind.INT, TokenKind.STR):
            self.advance()
            return ast.Literal(span=self.span(start), text=start.text)

        if start.kind is TokenKind.PUNCT:
            if start.text == "(":
                self.advance()
                if self.eat_punct(")"):
                    return ast.TupleExpression(span=self.span(start), elements=())
                first = self.parse_expression()
                if self.eat_punct(")"):
                    return first
                self.expect_punct(",")
                elements = (first,) + self.parse_sequence(")")
                return ast.TupleExpression(span=self.span(start), elements=elements)
            if start.text == "[":
                return self.parse_array()
            if start.text == "{":
                return self.parse_block()
            if start.text in ("|", "||"):
                return self.parse_lambda()
            if start.text == "<":
                return self.parse_qualified_path()
            if start.text == "$":
                self.advance()
                if self.at_punct("("):
                    self.skip_group()
                else:
                    self.expect_ident()
                return ast.Literal(span=self.span(start), text="$")
            raise self.error("expected expression")

        if start.kind is TokenKind.EOF:
            raise self.error("expected expression")

        keyword = start.text
        if keyword in ("true", "false", "break", "continue"):
            self.advance()
            return ast.Literal(span=self.span(start), text=keyword)
        if keyword == "if":
            return self.parse_if()
        if keyword == "for":
            self.advance()
            self.skip_until("in")
            self.expect_keyword("in")
            iterable = self.parse_expression(no_struct=True)
            body = self.parse_block()
            return ast.ForExpression(span=self.span(start), iterable=iterable, body=body)
        if keyword == "while":
            self.advance()
            condition = self.parse_expression(no_struct=True)
            body = self.parse_block()
            return ast.WhileExpression(span=self.span(start), condition=condition, body=body)
        if keyword == "loop":
            self.advance()
            body = self.parse_block()
            condition = ast.Literal(span=self.span(start, start), text="true")
            return ast.WhileExpression(span=self.span(start), condition=condition, body=body)
        if keyword == "match":
            return self.parse_match()
        if keyword in ("unsafe", "comptime") and self.at_punct("{", 1):
            self.advance()
            return self.parse_block()
        if keyword == "quote" and self.at_punct("{", 1):
            self.advance()
            self.skip_group()
            return ast.QuoteExpression(span=self.span(start))
        if keyword == "return":
            self.advance()
            if self.peek().text in RANGE_TERMINATORS:
                value: ast.Expression = ast.Literal(span=self.span(start), text="")
            else:
                value = self.parse_expression(no_struct)
            return ast.PrefixExpression(span=self.span(start), operator="return", rhs=value)
        return self.parse_path_expression(no_struct)

    def parse_path_expression(self, no_struct: bool) -> ast.Expression:
        start = self.expect_ident()
        segments = [start.text]
        while self.at_punct("::"):
            self.advance()
            if self.at_punct("<"):
                self.skip_generics()
                continue
            segments.append(self.expect_ident().text)

        if self.at_punct("!") and (self.at_punct("(", 1) or self.at_punct("[", 1)):
            self.advance()
            path = ast.PathExpression(span=self.span(start), segments=tuple(segments))
            if self.at_punct("["):
                self.advance()
                arguments = self.parse_sequence("]")
            else:
                arguments = self.parse_arguments()
            return ast.CallExpression(
                span=self.span(start), function=path, arguments=arguments, is_macro=True
            )

        path = ast.PathExpression(span=self.span(start), segments=tuple(segments))
        if not no_struct and self.at_punct("{") and self.looks_like_constructor():
            fields = self.parse_constructor_fields()
            return ast.ConstructorExpression(
                span=self.span(start), type_name=path.text, fields=fields
            )
        return path

    def parse_qualified_path(self) -> ast.PathExpression:
        """`<Type as Trait>::name`. The qualifier is kept as a single `<...>` segment."""
        start = self.peek()
        first = self.index
        self.skip_generics()
        segments = [_render_tokens(self.tokens[first : self.index])]
        while self.eat_punct("::"):
            if self.at_punct("<"):
                self.skip_generics()
                continue
            segments.append(self.expect_ident().text)
        if len(segments) < 2:
            raise self.error("expected '::' after qualified type")
        return ast.PathExpression(span=self.span(start), segments=tuple(segments))

    def looks_like_constructor(self) -> bool:
        following = self.peek(1)
        if following.is_punct("}") or following.is_punct(".."):
            return True
        if following.kind is not TokenKind.IDENT:
            return False
        after = self.peek(2)
        return after.is_punct(":") or after.is_punct(",") or after.is_punct("}")

    def parse_constructor_fields(self) -> tuple[ast.Expression, ...]:
        self.expect_punct("{")
        fields: list[ast.Expression] = []
        while not self.eat_punct("}"):
            if self.eat_punct(".."):
                fields.append(self.parse_expression())
            else:
                name = self.expect_ident()
                if self.eat_punct(":"):
                    fields.append(self.parse_expression())
                else:
                    fields.append(ast.PathExpression(span=self.span(name), segments=(name.text,)))
            if not self.eat_punct(","):
                self.expect_punct("}")
                break
        return tuple(fields)

    def parse_array(self) -> ast.ArrayLiteral:
        start = self.expect_punct("[")
        if self.eat_punct("]"):
            return ast.ArrayLiteral(span=self.span(start), elements=())
        first = self.parse_expression()
        if self.eat_punct(";"):
            length = self.parse_expression()
            self.expect_punct("]")
            return ast.ArrayLiteral(span=self.span(start), elements=(first, length))
        if self.eat_punct("]"):
            return ast.ArrayLiteral(span=self.span(start), elements=(first,))
        self.expect_punct(",")
        elements = (first,) + self.parse_sequence("]")
        return ast.ArrayLiteral(span=self.span(start), elements=elements)

    def parse_lambda(self) -> ast.LambdaExpression:
        start = self.peek()
        if not self.eat_punct("||"):
            self.expect_punct("|")
            self.skip_until("|")
            self.expect_punct("|")
        if self.eat_punct("->"):
            self.skip_until("{")
            body: ast.Expression = self.parse_block()
        else:
            body = self.parse_expression()
        return ast.LambdaExpression(span=self.span(start), body=body)

    def parse_if(self) -> ast.IfExpression:
        start = self.expect_keyword("if")
        condition = self.parse_expression(no_struct=True)
        consequence = self.parse_block()
        alternative: ast.Expression | None = None
        if self.eat_keyword("else"):
            alternative = self.parse_if() if self.at_keyword("if") else self.parse_block()
        return ast.IfExpression(
            span=self.span(start),
            condition=condition,
            consequence=consequence,
            alternative=alternative,
        )

    def parse_match(self) -> ast.MatchExpression:
        start = self.expect_keyword("match")
        scrutinee = self.parse_expression(no_struct=True)
        self.expect_punct("{")
        arms: list[ast.Expression] = []
        while not self.eat_punct("}"):
            # Pattern and optional guard.
            self.skip_until("=>")
            self.expect_punct("=>")
            if self.at_punct("{"):
                arms.append(self.parse_block())
            else:
                arms.append(self.parse_expression())
            self.eat_punct(",")
        return ast.MatchExpression(span=self.span(start), scrutinee=scrutinee, arms=tuple(arms))


def _render_tokens(tokens: list[Token]) -> str:
    text = ""
    for position, token in enumerate(tokens):
        if position and token.kind is TokenKind.IDENT and tokens[position - 1].kind is TokenKind.IDENT:
            text += " "
        text += token.text
    return text


def _type_name(tokens: list[Token]) -> str:
    """The last identifier outside generic arguments, e.g. `Foo` for `&mut a::Foo<T>`."""
    depth = 0
    name = None
    for token in tokens:
        if token.kind is TokenKind.PUNCT:
            if token.text == "<":
                depth += 1
            elif token.text == ">":
                depth -= 1
            elif token.text == ">>":
                depth -= 2
        elif token.kind is TokenKind.IDENT and depth == 0 and token.text != "mut":
            name = token.text
    return name or _render_tokens(tokens)


def parse_program(source: str, file_path: str = "main.nr") -> ast.ParsedModule:
    """Parse Noir source text into a `ParsedModule`.

    Raises:
        ParseError: The source is not valid Noir or nests deeper than the parser supports
    """
    tokens = tokenize(source, file_path)
    try:
        return Parser(tokens, file_path, source).parse_module()
    except RecursionError as e:
        raise ParseError("expression nested too deeply", file_path, 1, 1) from e


def parse_file(path: Path, display_path: str | None = None) -> ast.ParsedModule:
    """Read and parse a Noir source file.

    Args:
        path: File to read
        display_path: Path recorded in spans, defaults to `path`

    Raises:
        ParseError: The file could not be read or parsed
    """
    file_path = display_path or path.as_posix()
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(f"cannot read file: {e}", file_path, 1, 1) from e
    logger.debug(f"Parsing {file_path}")
    return parse_program(source, file_path)
