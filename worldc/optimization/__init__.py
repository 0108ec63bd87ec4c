"""Optimization passes over compiled requirements."""

from .passes import OptimizationPass, OptimizationPipeline, SimplifyPass

__all__ = ['OptimizationPass', 'OptimizationPipeline', 'SimplifyPass']
