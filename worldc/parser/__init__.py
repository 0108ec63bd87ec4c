"""Requirement Parser - Builds expression trees from requirement text."""

from .parser import Parser, parse_requirement
from .macro_expander import MacroExpander, MacroScope, compile_requirement
from .ast_nodes import *

__all__ = ['Parser', 'parse_requirement', 'MacroExpander', 'MacroScope', 'compile_requirement']
