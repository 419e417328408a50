"""
Recursive descent parser for the TypeScript subset

One procedure per grammar rule, one token of lookahead, precedence climbing
for binary operators. A rule that cannot continue records one diagnostic and
returns None; the statement loop then skips ahead to the next `;`, the `}`
closing the current block, or end of input, and carries on. Whatever parsed
cleanly (or partially) is kept, so a Program always comes back.
"""

import logging
import math
from enum import IntEnum
from typing import Dict, List, Optional, Sequence, Union

from ..lexer.tokens import (
    Token, TokenType, SourceLocation, DECLARATION_KEYWORDS, UNSUPPORTED_STATEMENT_KEYWORDS
)
from ..diagnostics import DiagnosticCollector
from .ast_nodes import (
    SourceSpan, DeclarationKind, Statement, Expression, Program, FunctionDeclaration,
    VariableDeclaration, VariableDeclarator, ReturnStatement, ExpressionStatement,
    BlockStatement, CallExpression, BinaryExpression, UnaryExpression, MemberExpression,
    Identifier, Literal
)
from .token_stream import TokenStream
from .errors import (
    report_unexpected_token, report_unmatched_brace, report_nesting_too_deep,
    report_unsupported_construct
)

logger = logging.getLogger(__name__)


class Precedence(IntEnum):
    """Binary operator precedence levels, lowest first."""
    NONE = 0
    LOGICAL_OR = 1      # ||, ??
    LOGICAL_AND = 2     # &&
    EQUALITY = 3        # ==, !=, ===, !==
    RELATIONAL = 4      # <, >, <=, >=
    ADDITIVE = 5        # +, -
    MULTIPLICATIVE = 6  # *, /, %
    UNARY = 7           # !, -, +, typeof


BINARY_PRECEDENCE: Dict[str, Precedence] = {
    "||": Precedence.LOGICAL_OR,
    "??": Precedence.LOGICAL_OR,
    "&&": Precedence.LOGICAL_AND,
    "==": Precedence.EQUALITY,
    "!=": Precedence.EQUALITY,
    "===": Precedence.EQUALITY,
    "!==": Precedence.EQUALITY,
    "<": Precedence.RELATIONAL,
    ">": Precedence.RELATIONAL,
    "<=": Precedence.RELATIONAL,
    ">=": Precedence.RELATIONAL,
    "+": Precedence.ADDITIVE,
    "-": Precedence.ADDITIVE,
    "*": Precedence.MULTIPLICATIVE,
    "/": Precedence.MULTIPLICATIVE,
    "%": Precedence.MULTIPLICATIVE,
}

UNARY_OPERATORS = frozenset({"!", "-", "+"})

# Keywords usable where an expression or a name is expected
KEYWORD_LITERALS = {"true": True, "false": False, "null": None}
KEYWORD_IDENTIFIERS = frozenset({"this", "undefined", "super"})

ESCAPE_SEQUENCES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    'b': '\b',
    'f': '\f',
    'v': '\v',
    '0': '\0',
    '\\': '\\',
    '"': '"',
    "'": "'",
    '`': '`',
}

# Bounds recursion so hostile nesting ends in a diagnostic, not a RecursionError
MAX_NESTING_DEPTH = 100


class Parser:
    """
    Recursive descent parser producing a Program and syntax diagnostics.

    Usage:
        parser = Parser(tokens, diagnostics)
        program = parser.parse()
    """

    def __init__(self, tokens: Union[TokenStream, Sequence[Token]],
                 diagnostics: Optional[DiagnosticCollector] = None):
        """
        Args:
            tokens: Full scanner output (trivia included) or a prepared TokenStream
            diagnostics: Collector shared with the scanner
        """
        self.stream = tokens if isinstance(tokens, TokenStream) else TokenStream(tokens)
        self.diagnostics = diagnostics if diagnostics is not None else DiagnosticCollector()
        # Set once a diagnostic was recorded for the statement being parsed
        self._panic = False
        # Set when the diagnostic for this statement is a nesting overflow;
        # partial expressions built before it are kept
        self._nesting_exceeded = False
        self._depth = 0
        # Pending `>` left over after a `>>` closed a type argument list
        self._split_closers = 0

    def parse(self) -> Program:
        """Parse the whole stream. Always returns a Program."""
        body: List[Statement] = []

        while not self.stream.at_end():
            token = self.stream.peek()
            if token.is_punctuation('}'):
                report_unmatched_brace(self.diagnostics, token)
                self.stream.advance()
                continue

            statement = self._parse_statement_with_recovery()
            if statement is not None:
                body.append(statement)

        start = SourceLocation(1, 1, 0)
        program = Program(tuple(body), SourceSpan(start, self.stream.end_location()))
        logger.debug("parsed %d top-level statements", len(body))
        return program

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _parse_statement_with_recovery(self) -> Optional[Statement]:
        self._panic = False
        self._nesting_exceeded = False
        statement = self._parse_statement()
        if self._panic:
            self._synchronize()
            self._panic = False
        return statement

    def _parse_statement(self) -> Optional[Statement]:
        token = self.stream.peek()

        if token.is_punctuation(';'):
            # Empty statement
            self.stream.advance()
            return None

        if token.type == TokenType.KEYWORD:
            if token.lexeme == "function":
                return self._parse_function_declaration()
            if token.lexeme in DECLARATION_KEYWORDS:
                return self._parse_variable_declaration()
            if token.lexeme == "return":
                return self._parse_return_statement()
            if token.lexeme in UNSUPPORTED_STATEMENT_KEYWORDS:
                report_unsupported_construct(self.diagnostics, token)

        if token.is_punctuation('{'):
            return self._parse_block_statement()

        return self._parse_expression_statement()

    def _parse_function_declaration(self) -> Optional[FunctionDeclaration]:
        """function name(params) (: type)? { body }"""
        start_token = self.stream.advance()

        name = self._parse_binding_identifier("function name", allow_annotation=False)
        if name is None:
            return None

        if self._expect_punctuation('(') is None:
            return None

        params: List[Identifier] = []
        if not self.stream.check(TokenType.PUNCTUATION, ')'):
            while True:
                param = self._parse_binding_identifier("parameter name", allow_optional=True)
                if param is None:
                    return None
                params.append(param)
                if self.stream.match(TokenType.PUNCTUATION, ',') is None:
                    break
                # Trailing comma
                if self.stream.check(TokenType.PUNCTUATION, ')'):
                    break

        if self._expect_punctuation(')') is None:
            return None

        return_type = None
        if self.stream.match(TokenType.OPERATOR, ':') is not None:
            return_type = self._parse_type_annotation()
            if return_type is None:
                return None

        body = self._parse_block_statement()
        if body is None:
            # Keep the signature; the body is lost
            here = self._current_start()
            body = BlockStatement((), SourceSpan(here, here))

        return FunctionDeclaration(
            id=name,
            params=tuple(params),
            return_type=return_type,
            body=body,
            span=self._span_from(start_token),
        )

    def _parse_variable_declaration(self) -> Optional[VariableDeclaration]:
        """(let|const|var) declarator (, declarator)* ;?"""
        start_token = self.stream.advance()
        kind = DeclarationKind(start_token.lexeme)

        declarations: List[VariableDeclarator] = []
        while True:
            declarator = self._parse_declarator()
            if declarator is None:
                break
            declarations.append(declarator)
            if self._panic or self.stream.match(TokenType.PUNCTUATION, ',') is None:
                break

        if not self._panic:
            self._consume_terminator()
        elif not declarations:
            return None

        return VariableDeclaration(kind, tuple(declarations), self._span_from(start_token))

    def _parse_declarator(self) -> Optional[VariableDeclarator]:
        identifier = self._parse_binding_identifier("variable name")
        if identifier is None:
            return None

        init = None
        if self.stream.match(TokenType.OPERATOR, '=') is not None:
            init = self._parse_expression()
            if init is None:
                return None

        end = init.span.end if init is not None else identifier.span.end
        return VariableDeclarator(identifier, init, SourceSpan(identifier.span.start, end))

    def _parse_return_statement(self) -> Optional[ReturnStatement]:
        start_token = self.stream.advance()

        argument = None
        if not self._at_statement_end():
            argument = self._parse_expression()
            if argument is None:
                return None

        self._consume_terminator()
        return ReturnStatement(argument, self._span_from(start_token))

    def _parse_expression_statement(self) -> Optional[ExpressionStatement]:
        start = self._current_start()
        expression = self._parse_expression()
        if expression is None:
            return None

        self._consume_terminator()
        return ExpressionStatement(expression, SourceSpan(start, self._previous_end()))

    def _parse_block_statement(self) -> Optional[BlockStatement]:
        start_token = self._expect_punctuation('{')
        if start_token is None:
            return None
        if not self._enter():
            return None

        body: List[Statement] = []
        try:
            while True:
                token = self.stream.peek()
                if token is None:
                    # Close the block at end of input
                    self._error("'}'")
                    break
                if token.is_punctuation('}'):
                    self.stream.advance()
                    break
                statement = self._parse_statement_with_recovery()
                if statement is not None:
                    body.append(statement)
        finally:
            self._depth -= 1

        return BlockStatement(tuple(body), self._span_from(start_token))

    # ------------------------------------------------------------------
    # Names and type annotations
    # ------------------------------------------------------------------

    def _parse_binding_identifier(self, what: str, allow_annotation: bool = True,
                                  allow_optional: bool = False) -> Optional[Identifier]:
        """identifier (?)? (: typeAnnotation)?"""
        token = self.stream.match(TokenType.IDENTIFIER)
        if token is None:
            return self._error(what)

        optional = allow_optional and self.stream.match(TokenType.OPERATOR, '?') is not None

        type_annotation = None
        if allow_annotation and self.stream.match(TokenType.OPERATOR, ':') is not None:
            type_annotation = self._parse_type_annotation()
            if type_annotation is None:
                return None

        return Identifier(token.lexeme, self._span_from(token), type_annotation, optional)

    def _parse_type_annotation(self) -> Optional[str]:
        """
        Returned as normalized text, e.g. ``Array<string[]> | null``.
        """
        self._split_closers = 0
        text = self._parse_type()
        if text is not None and self._split_closers:
            # `>>` closed more argument lists than were open
            self._split_closers = 0
            return self._error("end of type annotation")
        return text

    def _parse_type(self) -> Optional[str]:
        """
        type := typeTerm (| typeTerm)*
        typeTerm := (identifier | keyword) typeArguments? ([ ])*
        typeArguments := < type (, type)* >
        """
        if not self._enter():
            return None
        try:
            members: List[str] = []
            while True:
                token = self.stream.peek()
                if token is None or token.type not in (TokenType.IDENTIFIER, TokenType.KEYWORD):
                    return self._error("type annotation")
                self.stream.advance()

                text = token.lexeme
                if self.stream.match(TokenType.OPERATOR, '<') is not None:
                    arguments: List[str] = []
                    while True:
                        argument = self._parse_type()
                        if argument is None:
                            return None
                        arguments.append(argument)
                        if self._split_closers or self.stream.match(TokenType.PUNCTUATION, ',') is None:
                            break
                    if not self._close_type_arguments():
                        return self._error("'>'")
                    text += "<" + ", ".join(arguments) + ">"

                # After `>>` the rest belongs to the enclosing argument list
                if self._split_closers:
                    members.append(text)
                    break

                while self.stream.match(TokenType.PUNCTUATION, '[') is not None:
                    if self._expect_punctuation(']') is None:
                        return None
                    text += "[]"
                members.append(text)

                if self.stream.match(TokenType.OPERATOR, '|') is None:
                    break

            return " | ".join(members)
        finally:
            self._depth -= 1

    def _close_type_arguments(self) -> bool:
        """Consume one `>`. The scanner reads `>>` as one token; it closes two lists."""
        if self._split_closers:
            self._split_closers -= 1
            return True
        if self.stream.match(TokenType.OPERATOR, '>') is not None:
            return True
        if self.stream.match(TokenType.OPERATOR, '>>') is not None:
            self._split_closers = 1
            return True
        return False

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _parse_expression(self, min_precedence: Precedence = Precedence.LOGICAL_OR) -> Optional[Expression]:
        """
        Precedence climbing over BINARY_PRECEDENCE; all binary operators are
        left associative.

        Every operator added to the chain nests the tree one level deeper, so
        each one counts against MAX_NESTING_DEPTH. On overflow the chain
        built so far is returned.
        """
        if not self._enter():
            return None
        entered = 1
        try:
            left = self._parse_unary()
            if left is None:
                return None

            while not self._panic:
                precedence = self._binary_precedence(self.stream.peek())
                if precedence is None or precedence < min_precedence:
                    break
                if not self._enter():
                    break
                entered += 1
                operator = self.stream.advance()
                right = self._parse_expression(Precedence(precedence + 1))
                if right is None:
                    return left if self._nesting_exceeded else None
                left = BinaryExpression(operator.lexeme, left, right,
                                        SourceSpan(left.span.start, right.span.end))
            return left
        finally:
            self._depth -= entered

    def _binary_precedence(self, token: Optional[Token]) -> Optional[Precedence]:
        if token is None or token.type != TokenType.OPERATOR:
            return None
        return BINARY_PRECEDENCE.get(token.lexeme)

    def _parse_unary(self) -> Optional[Expression]:
        token = self.stream.peek()
        is_unary = token is not None and (
            (token.type == TokenType.OPERATOR and token.lexeme in UNARY_OPERATORS)
            or token.is_keyword("typeof")
        )
        if not is_unary:
            return self._parse_postfix()

        if not self._enter():
            return None
        try:
            operator = self.stream.advance()
            argument = self._parse_unary()
            if argument is None:
                return None
            return UnaryExpression(operator.lexeme, argument,
                                   SourceSpan(self._start_of(operator), argument.span.end))
        finally:
            self._depth -= 1

    def _parse_postfix(self) -> Optional[Expression]:
        """
        primary followed by any number of calls and member accesses.

        Like binary chains, each call or member access nests one level and
        counts against MAX_NESTING_DEPTH.
        """
        expression = self._parse_primary()

        entered = 0
        try:
            while expression is not None and not self._panic:
                token = self.stream.peek()
                if token is None or not (token.is_punctuation('(') or token.is_punctuation('.')
                                         or token.is_punctuation('[')):
                    break
                if not self._enter():
                    break
                entered += 1
                self.stream.advance()

                if token.lexeme == '(':
                    extended = self._finish_call(expression)
                elif token.lexeme == '.':
                    token = self.stream.peek()
                    # Keywords are valid property names (obj.default, node.type)
                    if token is None or token.type not in (TokenType.IDENTIFIER, TokenType.KEYWORD):
                        return self._error("property name")
                    self.stream.advance()
                    prop = Identifier(token.lexeme, self._span_from(token))
                    extended = MemberExpression(expression, prop, False,
                                                SourceSpan(expression.span.start, prop.span.end))
                else:
                    extended = None
                    prop = self._parse_expression()
                    if prop is not None and self._expect_punctuation(']') is not None:
                        extended = MemberExpression(expression, prop, True,
                                                    SourceSpan(expression.span.start, self._previous_end()))

                if extended is None:
                    return expression if self._nesting_exceeded else None
                expression = extended
        finally:
            self._depth -= entered

        return expression

    def _finish_call(self, callee: Expression) -> Optional[CallExpression]:
        arguments: List[Expression] = []
        if not self.stream.check(TokenType.PUNCTUATION, ')'):
            while True:
                argument = self._parse_expression()
                if argument is None:
                    return None
                arguments.append(argument)
                if self._panic or self.stream.match(TokenType.PUNCTUATION, ',') is None:
                    break
                if self.stream.check(TokenType.PUNCTUATION, ')'):
                    break

        if self._expect_punctuation(')') is None:
            return None
        return CallExpression(callee, tuple(arguments),
                              SourceSpan(callee.span.start, self._previous_end()))

    def _parse_primary(self) -> Optional[Expression]:
        token = self.stream.peek()
        if token is None:
            return self._error("expression")

        if token.type == TokenType.LITERAL:
            self.stream.advance()
            return self._make_literal(token)

        if token.type == TokenType.IDENTIFIER:
            self.stream.advance()
            return Identifier(token.lexeme, self._span_from(token))

        if token.type == TokenType.KEYWORD:
            if token.lexeme in KEYWORD_LITERALS:
                self.stream.advance()
                value = KEYWORD_LITERALS[token.lexeme]
                literal_type = "null" if value is None else "boolean"
                return Literal(value, token.lexeme, literal_type, self._span_from(token))
            if token.lexeme in KEYWORD_IDENTIFIERS:
                self.stream.advance()
                return Identifier(token.lexeme, self._span_from(token))

        if token.is_punctuation('('):
            self.stream.advance()
            expression = self._parse_expression()
            if expression is None or self._expect_punctuation(')') is None:
                return None
            return expression

        return self._error("expression")

    def _make_literal(self, token: Token) -> Literal:
        raw = token.lexeme
        span = self._span_from(token)
        quote = raw[0]

        if quote in ('"', "'", '`'):
            terminated = token.malformed is None and len(raw) >= 2
            body = raw[1:-1] if terminated else raw[1:]
            literal_type = "template" if quote == '`' else "string"
            return Literal(_unescape(body), raw, literal_type, span)

        return Literal(_number_value(raw), raw, "number", span)

    # ------------------------------------------------------------------
    # Recovery and utilities
    # ------------------------------------------------------------------

    def _error(self, expected: str) -> None:
        """
        Record "Expected <expected>, found <current>" unless this statement
        already has a diagnostic. Always returns None so callers can
        ``return self._error(...)``.
        """
        if not self._panic:
            report_unexpected_token(self.diagnostics, expected, self.stream.peek(),
                                    self.stream.end_location())
            self._panic = True
        return None

    def _synchronize(self):
        """Skip to just past `;`, or up to the `}` closing the current block, or end of input."""
        depth = 0
        while not self.stream.at_end():
            token = self.stream.peek()
            if token.is_punctuation('{'):
                depth += 1
            elif token.is_punctuation('}'):
                if depth == 0:
                    return
                depth -= 1
                if depth == 0:
                    # A skipped block ends a statement too
                    self.stream.advance()
                    return
            elif token.is_punctuation(';') and depth == 0:
                self.stream.advance()
                return
            self.stream.advance()

    def _enter(self) -> bool:
        """Track recursion depth; on overflow report once and refuse to descend."""
        if self._depth >= MAX_NESTING_DEPTH:
            if not self._panic:
                report_nesting_too_deep(self.diagnostics, self.stream.peek(),
                                        self.stream.end_location(), MAX_NESTING_DEPTH)
                self._panic = True
                self._nesting_exceeded = True
            return False
        self._depth += 1
        return True

    def _expect_punctuation(self, char: str) -> Optional[Token]:
        token = self.stream.match(TokenType.PUNCTUATION, char)
        if token is None:
            return self._error(f"'{char}'")
        return token

    def _at_statement_end(self) -> bool:
        token = self.stream.peek()
        return (token is None
                or token.is_punctuation(';')
                or token.is_punctuation('}')
                or self.stream.newline_before())

    def _consume_terminator(self) -> bool:
        """`;`, or an implicit end before `}`, end of input or a line break."""
        if self.stream.match(TokenType.PUNCTUATION, ';') is not None:
            return True
        if self._at_statement_end():
            return True
        self._error("';'")
        return False

    @staticmethod
    def _start_of(token: Token) -> SourceLocation:
        return token.position.start_location

    @staticmethod
    def _end_of(token: Token) -> SourceLocation:
        # Significant tokens never span lines
        position = token.position
        return SourceLocation(position.line, position.column + position.length, position.end)

    def _span_from(self, start_token: Token) -> SourceSpan:
        return SourceSpan(self._start_of(start_token), self._previous_end())

    def _previous_end(self) -> SourceLocation:
        return self._end_of(self.stream.previous())

    def _current_start(self) -> SourceLocation:
        token = self.stream.peek()
        if token is None:
            return self.stream.end_location()
        return self._start_of(token)


def _number_value(raw: str) -> Union[int, float, None]:
    """Numeric value of a literal, or None when it is malformed or out of range."""
    try:
        if '.' in raw:
            value = float(raw)
            # Infinity has no JSON spelling
            return value if math.isfinite(value) else None
        return int(raw)
    except ValueError:
        return None


def _unescape(body: str) -> str:
    result = []
    i = 0
    while i < len(body):
        char = body[i]
        if char != '\\' or i + 1 >= len(body):
            result.append(char)
            i += 1
            continue

        escape = body[i + 1]
        i += 2
        if escape in ESCAPE_SEQUENCES:
            result.append(ESCAPE_SEQUENCES[escape])
        elif escape == 'x' and _is_hex(body[i:i + 2], 2):
            result.append(chr(int(body[i:i + 2], 16)))
            i += 2
        elif escape == 'u' and body[i:i + 1] == '{' and '}' in body[i:i + 8]:
            close = body.index('}', i)
            digits = body[i + 1:close]
            if digits and _is_hex(digits, len(digits)) and int(digits, 16) <= 0x10FFFF:
                result.append(_code_point(int(digits, 16)))
                i = close + 1
            else:
                result.append(escape)
        elif escape == 'u' and _is_hex(body[i:i + 4], 4):
            code = int(body[i:i + 4], 16)
            i += 4
            # A high surrogate followed by a low surrogate escape is one character
            if 0xD800 <= code <= 0xDBFF and body[i:i + 2] == '\\u' and _is_hex(body[i + 2:i + 6], 4):
                low = int(body[i + 2:i + 6], 16)
                if 0xDC00 <= low <= 0xDFFF:
                    code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                    i += 6
            result.append(_code_point(code))
        else:
            # Unknown escapes stand for the character itself
            result.append(escape)
    return ''.join(result)


def _code_point(code: int) -> str:
    """Lone surrogates cannot be encoded, so they become U+FFFD."""
    if 0xD800 <= code <= 0xDFFF:
        return '\ufffd'
    return chr(code)


def _is_hex(text: str, length: int) -> bool:
    return len(text) == length and all(c in '0123456789abcdefABCDEF' for c in text)


def parse_tokens(tokens: Sequence[Token], diagnostics: Optional[DiagnosticCollector] = None) -> Program:
    """Convenience function to parse scanner output."""
    return Parser(tokens, diagnostics).parse()
