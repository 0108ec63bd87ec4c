"""
Optimization passes for compiled requirements.

Passes run between graph building and code generation. Each pass rewrites
the requirement table into an equivalent but smaller one.
"""

import sys
from typing import Dict, List

from ..parser.ast_nodes import And, Expression, Fixed, Not, Or


class OptimizationPass:
    """Base class for optimization passes."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.stats = {}

    def log(self, message: str):
        """Log message if verbose mode enabled."""
        if self.verbose:
            print(f"[opt] {message}", file=sys.stderr)

    def run(self, compilation_data: Dict) -> Dict:
        """
        Run the optimization pass.

        Args:
            compilation_data: Dictionary containing:
                - requirements: Dict[str, Expression] keyed by requirement key

        Returns:
            Modified compilation_data dictionary
        """
        raise NotImplementedError


def count_nodes(node: Expression) -> int:
    return sum(1 for _ in node.walk())


class SimplifyPass(OptimizationPass):
    """
    Boolean simplification.

    - Flattens nested And/Or of the same kind
    - Drops neutral constants, short-circuits on absorbing ones
    - Removes duplicate operands (first occurrence wins)
    - Collapses single-operand And/Or
    - Folds Not over constants and double negation
    """

    def __init__(self, verbose: bool = False):
        super().__init__(verbose)
        self.constants_folded = 0
        self.duplicates_removed = 0
        self.flattened = 0

    def run(self, compilation_data: Dict) -> Dict:
        self.log("Simplify Pass")

        requirements = compilation_data.get('requirements', {})
        nodes_before = sum(count_nodes(expr) for expr in requirements.values())

        simplified = {key: self.simplify(expr) for key, expr in requirements.items()}

        nodes_after = sum(count_nodes(expr) for expr in simplified.values())
        constant = sum(1 for expr in simplified.values() if isinstance(expr, Fixed))

        self.log(f"  Requirements: {len(simplified)}")
        self.log(f"  Nodes: {nodes_before} -> {nodes_after}")
        self.log(f"  Constants folded: {self.constants_folded}")
        self.log(f"  Duplicates removed: {self.duplicates_removed}")
        if constant:
            self.log(f"  Requirements reduced to a constant: {constant}")

        self.stats = {
            'requirements': len(simplified),
            'nodes_before': nodes_before,
            'nodes_after': nodes_after,
            'constants_folded': self.constants_folded,
            'duplicates_removed': self.duplicates_removed,
            'flattened': self.flattened,
        }

        compilation_data['requirements'] = simplified
        return compilation_data

    def simplify(self, node: Expression) -> Expression:
        if isinstance(node, Not):
            child = self.simplify(node.child)
            if isinstance(child, Fixed):
                self.constants_folded += 1
                return Fixed(not child.value)
            if isinstance(child, Not):
                return child.child
            return Not(child)

        if isinstance(node, (And, Or)):
            return self._simplify_group(node)

        return node

    def _simplify_group(self, node: Expression) -> Expression:
        group = type(node)
        # True is neutral for And and absorbing for Or; False the other way round
        neutral = group is And

        items: List[Expression] = []
        seen = set()
        for item in node.items:
            item = self.simplify(item)
            if isinstance(item, group):
                self.flattened += 1
                operands = item.items
            else:
                operands = (item,)
            for operand in operands:
                if isinstance(operand, Fixed):
                    self.constants_folded += 1
                    if operand.value == neutral:
                        continue
                    return Fixed(not neutral)
                if operand in seen:
                    self.duplicates_removed += 1
                    continue
                seen.add(operand)
                items.append(operand)

        if not items:
            return Fixed(neutral)
        if len(items) == 1:
            return items[0]
        return group(tuple(items))


class OptimizationPipeline:
    """
    Run multiple optimization passes in sequence.
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.passes: List[OptimizationPass] = []

    def add_pass(self, pass_class: type, **kwargs):
        """Add an optimization pass to the pipeline."""
        pass_instance = pass_class(verbose=self.verbose, **kwargs)
        self.passes.append(pass_instance)

    def run(self, compilation_data: Dict) -> Dict:
        """Run all optimization passes in sequence."""
        if self.verbose:
            print(f"[opt] Running {len(self.passes)} optimization passes", file=sys.stderr)

        for pass_instance in self.passes:
            compilation_data = pass_instance.run(compilation_data)

        all_stats = {}
        for pass_instance in self.passes:
            all_stats[pass_instance.__class__.__name__] = pass_instance.stats

        compilation_data['optimization_stats'] = all_stats

        return compilation_data
