"""
World logic compiler (worldc) - Compiles a data-driven game world description
into Python enumerations, static tables and requirement expression trees.

Provides the requirement language compiler, the world graph builder and the
runtime support library used by the generated code.
"""

__version__ = "0.1.0"
__author__ = "worldc Project"
