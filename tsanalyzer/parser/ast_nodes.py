"""
Abstract Syntax Tree node definitions.

The node set is closed: every kind the parser can build is listed in
ASTNodeType and has exactly one class here. Nodes are frozen dataclasses and
container fields are tuples, so a tree cannot change once the parse that
built it has finished. Parents own their children; there are no back
references.
"""

from abc import ABC
from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from ..lexer.tokens import SourceLocation


class ASTNodeType(Enum):
    """Enumeration of all AST node types."""

    PROGRAM = "Program"

    # Statements
    FUNCTION_DECLARATION = "FunctionDeclaration"
    VARIABLE_DECLARATION = "VariableDeclaration"
    VARIABLE_DECLARATOR = "VariableDeclarator"
    RETURN_STATEMENT = "ReturnStatement"
    EXPRESSION_STATEMENT = "ExpressionStatement"
    BLOCK_STATEMENT = "BlockStatement"

    # Expressions
    CALL_EXPRESSION = "CallExpression"
    BINARY_EXPRESSION = "BinaryExpression"
    UNARY_EXPRESSION = "UnaryExpression"
    MEMBER_EXPRESSION = "MemberExpression"
    IDENTIFIER = "Identifier"
    LITERAL = "Literal"


class DeclarationKind(Enum):
    LET = "let"
    CONST = "const"
    VAR = "var"


@dataclass(frozen=True)
class SourceSpan:
    """Represents a span of source code (start and end locations)."""
    start: SourceLocation
    end: SourceLocation

    def __str__(self) -> str:
        return f"{self.start.line}:{self.start.column}-{self.end.line}:{self.end.column}"

    def to_dict(self) -> Dict[str, int]:
        return {
            "start": self.start.offset,
            "end": self.end.offset,
            "line": self.start.line,
            "column": self.start.column,
        }


class ASTNode(ABC):
    """Base class for all AST nodes."""

    node_type: ASTNodeType
    span: SourceSpan

    def children(self) -> Tuple["ASTNode", ...]:
        """Direct child nodes in source order."""
        return ()

    def accept(self, visitor: "ASTVisitor") -> Any:
        return visitor.visit(self)

    def __str__(self) -> str:
        return f"{self.node_type.value}@{self.span}"


class Statement(ASTNode):
    """Base class for statements."""


class Expression(ASTNode):
    """Base class for expressions."""


# ============================================================================
# Expressions
# ============================================================================

@dataclass(frozen=True)
class Identifier(Expression):
    """
    A name. ``type_annotation`` is only set where the grammar allows one
    (parameters and declarators); ``optional`` marks a ``name?`` parameter.
    """
    name: str
    span: SourceSpan
    type_annotation: Optional[str] = None
    optional: bool = False
    node_type = ASTNodeType.IDENTIFIER


@dataclass(frozen=True)
class Literal(Expression):
    """Literal value expression."""
    value: Any
    raw: str
    literal_type: str  # "number", "string", "template", "boolean", "null"
    span: SourceSpan
    node_type = ASTNodeType.LITERAL


@dataclass(frozen=True)
class BinaryExpression(Expression):
    operator: str
    left: Expression
    right: Expression
    span: SourceSpan
    node_type = ASTNodeType.BINARY_EXPRESSION

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.left, self.right)


@dataclass(frozen=True)
class UnaryExpression(Expression):
    """Prefix unary operation."""
    operator: str
    argument: Expression
    span: SourceSpan
    node_type = ASTNodeType.UNARY_EXPRESSION

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.argument,)


@dataclass(frozen=True)
class CallExpression(Expression):
    callee: Expression
    arguments: Tuple[Expression, ...]
    span: SourceSpan
    node_type = ASTNodeType.CALL_EXPRESSION

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.callee,) + self.arguments


@dataclass(frozen=True)
class MemberExpression(Expression):
    """``obj.prop`` (computed=False) or ``obj[expr]`` (computed=True)."""
    obj: Expression
    property: Expression
    computed: bool
    span: SourceSpan
    node_type = ASTNodeType.MEMBER_EXPRESSION

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.obj, self.property)


# ============================================================================
# Statements
# ============================================================================

@dataclass(frozen=True)
class BlockStatement(Statement):
    body: Tuple[Statement, ...]
    span: SourceSpan
    node_type = ASTNodeType.BLOCK_STATEMENT

    def children(self) -> Tuple[ASTNode, ...]:
        return self.body


@dataclass(frozen=True)
class ExpressionStatement(Statement):
    expression: Expression
    span: SourceSpan
    node_type = ASTNodeType.EXPRESSION_STATEMENT

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.expression,)


@dataclass(frozen=True)
class ReturnStatement(Statement):
    argument: Optional[Expression]
    span: SourceSpan
    node_type = ASTNodeType.RETURN_STATEMENT

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.argument,) if self.argument is not None else ()


@dataclass(frozen=True)
class VariableDeclarator(ASTNode):
    id: Identifier
    init: Optional[Expression]
    span: SourceSpan
    node_type = ASTNodeType.VARIABLE_DECLARATOR

    def children(self) -> Tuple[ASTNode, ...]:
        if self.init is not None:
            return (self.id, self.init)
        return (self.id,)


@dataclass(frozen=True)
class VariableDeclaration(Statement):
    kind: DeclarationKind
    declarations: Tuple[VariableDeclarator, ...]
    span: SourceSpan
    node_type = ASTNodeType.VARIABLE_DECLARATION

    def children(self) -> Tuple[ASTNode, ...]:
        return self.declarations


@dataclass(frozen=True)
class FunctionDeclaration(Statement):
    """Function declaration. Parameters are Identifiers carrying their declared types."""
    id: Identifier
    params: Tuple[Identifier, ...]
    return_type: Optional[str]
    body: BlockStatement
    span: SourceSpan
    node_type = ASTNodeType.FUNCTION_DECLARATION

    def children(self) -> Tuple[ASTNode, ...]:
        return (self.id,) + self.params + (self.body,)


# ============================================================================
# Top-level node
# ============================================================================

@dataclass(frozen=True)
class Program(ASTNode):
    """Root AST node owning the top-level statements."""
    body: Tuple[Statement, ...]
    span: SourceSpan
    node_type = ASTNodeType.PROGRAM

    def children(self) -> Tuple[ASTNode, ...]:
        return self.body


Node = Union[
    Program, FunctionDeclaration, VariableDeclaration, VariableDeclarator,
    CallExpression, BinaryExpression, UnaryExpression, MemberExpression,
    Identifier, Literal, ReturnStatement, ExpressionStatement, BlockStatement,
]


def walk(node: ASTNode) -> Iterator[ASTNode]:
    """Pre-order traversal of ``node`` and all its descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children()))


# ============================================================================
# Visitors
# ============================================================================

class ASTVisitor:
    """
    Dispatches ``visit(node)`` to ``visit_<NodeKind>``.

    Subclasses that must handle every kind can call ``missing_methods()`` to
    check coverage.
    """

    def visit(self, node: ASTNode) -> Any:
        method = getattr(self, f"visit_{node.node_type.value}", None)
        if method is None:
            return self.generic_visit(node)
        return method(node)

    def generic_visit(self, node: ASTNode) -> Any:
        for child in node.children():
            self.visit(child)
        return None

    @classmethod
    def missing_methods(cls) -> Tuple[str, ...]:
        return tuple(
            node_type.value for node_type in ASTNodeType
            if not hasattr(cls, f"visit_{node_type.value}")
        )


class ASTSerializer(ASTVisitor):
    """
    Converts a tree into the external ``{type, ...fields}`` dictionary shape.

    Field names follow the usual ESTree-style camelCase spelling.
    """

    def __init__(self, include_spans: bool = False):
        self.include_spans = include_spans

    def serialize(self, node: Optional[ASTNode]) -> Optional[Dict[str, Any]]:
        if node is None:
            return None
        return self.visit(node)

    def _node(self, node: ASTNode, **fields: Any) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": node.node_type.value}
        result.update(fields)
        if self.include_spans:
            result["span"] = node.span.to_dict()
        return result

    def _all(self, nodes) -> list:
        return [self.visit(n) for n in nodes]

    def visit_Program(self, node: Program):
        return self._node(node, body=self._all(node.body))

    def visit_FunctionDeclaration(self, node: FunctionDeclaration):
        return self._node(
            node,
            id=self.visit(node.id),
            params=self._all(node.params),
            returnType=node.return_type,
            body=self.visit(node.body),
        )

    def visit_VariableDeclaration(self, node: VariableDeclaration):
        return self._node(node, kind=node.kind.value, declarations=self._all(node.declarations))

    def visit_VariableDeclarator(self, node: VariableDeclarator):
        return self._node(node, id=self.visit(node.id), init=self.serialize(node.init))

    def visit_ReturnStatement(self, node: ReturnStatement):
        return self._node(node, argument=self.serialize(node.argument))

    def visit_ExpressionStatement(self, node: ExpressionStatement):
        return self._node(node, expression=self.visit(node.expression))

    def visit_BlockStatement(self, node: BlockStatement):
        return self._node(node, body=self._all(node.body))

    def visit_CallExpression(self, node: CallExpression):
        return self._node(node, callee=self.visit(node.callee), arguments=self._all(node.arguments))

    def visit_BinaryExpression(self, node: BinaryExpression):
        return self._node(
            node,
            operator=node.operator,
            left=self.visit(node.left),
            right=self.visit(node.right),
        )

    def visit_UnaryExpression(self, node: UnaryExpression):
        return self._node(node, operator=node.operator, argument=self.visit(node.argument), prefix=True)

    def visit_MemberExpression(self, node: MemberExpression):
        return self._node(
            node,
            object=self.visit(node.obj),
            property=self.visit(node.property),
            computed=node.computed,
        )

    def visit_Identifier(self, node: Identifier):
        fields: Dict[str, Any] = {"name": node.name}
        if node.optional:
            fields["optional"] = True
        if node.type_annotation is not None:
            fields["typeAnnotation"] = node.type_annotation
        return self._node(node, **fields)

    def visit_Literal(self, node: Literal):
        return self._node(node, value=node.value, raw=node.raw)


def to_dict(node: Optional[ASTNode], include_spans: bool = False) -> Optional[Dict[str, Any]]:
    """Serialize a tree (or None) to plain dictionaries."""
    return ASTSerializer(include_spans).serialize(node)
