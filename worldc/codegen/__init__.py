"""Python code generation for compiled world logic."""

from .codegen import CodeGenerator, generate_code

__all__ = ['CodeGenerator', 'generate_code']
