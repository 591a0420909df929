"""Service layer implementations.

Barrel export for parsing, resolution and graph services.
"""

from .grammar import LocalisationFile, parse_localisation, serialize_localisation
from .lexer import lex, Color, PlainText, ColorStart, ColorEnd, VariableRef
from .folding import fold_localisation_map
from .variables import VariableResolver, merge_variables, merge_localisations, substitute
from .tech_tree import TechnologyTree, GraphNode, GraphStats, build_tech_tree

__all__ = [
    # Grammar
    "LocalisationFile",
    "parse_localisation",
    "serialize_localisation",
    # Lexer
    "lex",
    "Color",
    "PlainText",
    "ColorStart",
    "ColorEnd",
    "VariableRef",
    # Folding
    "fold_localisation_map",
    # Variables
    "VariableResolver",
    "merge_variables",
    "merge_localisations",
    "substitute",
    # Graph
    "TechnologyTree",
    "GraphNode",
    "GraphStats",
    "build_tech_tree",
]
