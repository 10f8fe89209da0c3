"""Query DSL module.

Exports the typed expression tree, the immutable `Select` statement and the
`Q` filter class. Dialect rendering is handled by the `compilers` subpackage.
"""

from .expressions import Column, Conditional, Expression, ExpressionKind, Literal, col, lit
from .q import Q
from .select import JoinKind, Select, SelectPart

__all__ = (
    "Q",
    "Select",
    "SelectPart",
    "JoinKind",
    "Expression",
    "ExpressionKind",
    "Column",
    "Conditional",
    "Literal",
    "col",
    "lit",
)
