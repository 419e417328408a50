"""
Parser package

Recursive descent parser for a TypeScript subset with statement-level error
recovery. Produces an immutable AST rooted at Program plus diagnostics.

Key Features:
- Precedence climbing for binary expressions
- Member access (dot and computed) and call chains
- Resynchronization at `;`, `}` and end of input
- Partial nodes for statements that failed midway
"""

from .ast_nodes import (
    ASTNode, ASTNodeType, ASTVisitor, ASTSerializer, SourceSpan, DeclarationKind,
    Statement, Expression, Program, FunctionDeclaration, VariableDeclaration,
    VariableDeclarator, CallExpression, BinaryExpression, UnaryExpression,
    MemberExpression, Identifier, Literal, ReturnStatement, ExpressionStatement,
    BlockStatement, Node, walk, to_dict,
)
from .token_stream import TokenStream
from .parser import Parser, parse_tokens

__all__ = [
    # Core parser
    "Parser",
    "parse_tokens",
    "TokenStream",

    # AST nodes
    "ASTNode", "ASTNodeType", "SourceSpan", "DeclarationKind", "Node",
    "Statement", "Expression", "Program",
    "FunctionDeclaration", "VariableDeclaration", "VariableDeclarator",
    "ReturnStatement", "ExpressionStatement", "BlockStatement",
    "CallExpression", "BinaryExpression", "UnaryExpression", "MemberExpression",
    "Identifier", "Literal",

    # Traversal and serialization
    "ASTVisitor", "ASTSerializer", "walk", "to_dict",
]
