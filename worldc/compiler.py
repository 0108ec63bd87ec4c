"""
Main world logic compiler.

Coordinates loading, requirement compilation, graph building, the
completeness check, simplification and code generation.
"""

import os
import sys
import tempfile
from typing import Dict, List, Optional

from .codegen.codegen import CodeGenerator
from .errors import CompilationError, CompletenessError, WorldcError
from .graph.builder import GraphBuilder
from .graph.model import WorldGraph
from .model.items import ItemRegistry
from .model.loader import Loader
from .model.world import World
from .naming import Namer
from .optimization.passes import OptimizationPipeline, SimplifyPass
from .parser.ast_nodes import AreaReachable, EventRef, ItemCount
from .parser.macro_expander import MacroScope


class LogicCompiler:
    """Main world logic compiler class."""

    def __init__(self, verbose: bool = False, allow_undefined_events: bool = False,
                 simplify: bool = True, package: str = 'worldc'):
        self.verbose = verbose
        self.allow_undefined_events = allow_undefined_events
        self.simplify = simplify
        self.package = package  # import path of the runtime used by generated code
        self.warnings: List[str] = []
        self.graph: Optional[WorldGraph] = None
        self.items: Optional[ItemRegistry] = None

    def log(self, message: str):
        """Print log message if verbose mode is enabled."""
        if self.verbose:
            print(f"[worldc] {message}", file=sys.stderr)

    def warn(self, code: str, message: str):
        """Add a compilation warning with a code."""
        warning = f"{code}: {message}"
        self.warnings.append(warning)
        if self.verbose:
            print(f"[worldc] Warning: {warning}", file=sys.stderr)

    def get_warnings(self) -> List[str]:
        """Get all warnings generated during compilation."""
        return self.warnings.copy()

    def compile_file(self, manifest_path: str, output_dir: Optional[str] = None,
                     check_only: bool = False) -> bool:
        """
        Compile a world manifest into a Python package.

        Args:
            manifest_path: Path to the world.yaml manifest
            output_dir: Directory for generated modules (default: 'generated'
                        next to the manifest)
            check_only: Compile everything but write nothing

        Returns:
            True if compilation succeeded, False otherwise
        """
        if output_dir is None:
            output_dir = os.path.join(os.path.dirname(os.path.abspath(manifest_path)), 'generated')

        try:
            self.log(f"Reading {manifest_path}...")
            world = Loader(self.verbose).load_manifest(manifest_path)

            files = self.compile_world(world)

            if check_only:
                self.log("Check successful, nothing written")
            else:
                self.log(f"Writing {output_dir}...")
                write_output(output_dir, files)
                self.log(f"Compilation successful: {len(files)} files")
            return True

        except CompilationError as e:
            print(f"Compilation failed with {e}", file=sys.stderr)
            return False
        except WorldcError as e:
            print(f"Compilation error: {e}", file=sys.stderr)
            return False
        except OSError as e:
            print(f"Error: {e}", file=sys.stderr)
            return False

    def compile_world(self, world: World) -> Dict[str, str]:
        """
        Compile a loaded world.

        Returns:
            Generated module filename -> source text

        Raises:
            WorldcError: On the first fatal load/catalog error, or
            CompilationError: With every graph and completeness error
        """
        namer = Namer()

        self.log(f"Registering {len(world.items)} items...")
        self.items = ItemRegistry.from_entries(world.items, namer)
        self.log(f"  {self.items.flag_count} flag items, {self.items.counted_count} counted items")

        global_scope = MacroScope('global', world.macros)
        self.log("Building world graph...")
        builder = GraphBuilder(world, self.items, namer, global_scope,
                               resolve_events=not self.allow_undefined_events,
                               verbose=self.verbose)
        graph = builder.build()
        self.graph = graph

        for name in global_scope.unused():
            self.warn("WLD0101", f"Global macro '{name}' is never used")

        self.check_completeness(graph, self.items)
        self.check_unreachable_areas(graph)

        if self.simplify:
            pipeline = OptimizationPipeline(verbose=self.verbose)
            pipeline.add_pass(SimplifyPass)
            data = pipeline.run({'requirements': graph.requirements})
            graph.requirements = data['requirements']

        self.log("Generating code...")
        return CodeGenerator(graph, self.items, self.package).generate()

    def check_completeness(self, graph: WorldGraph, items: ItemRegistry):
        """
        Check that every reference is defined and every entity has a requirement.

        Undefined events are warnings instead of errors when
        allow_undefined_events is set.
        """
        errors: List[Exception] = []
        events = {event.identifier for event in graph.events}
        areas = {area.identifier for area in graph.areas}
        undefined_events = set()

        for key, expression in graph.requirements.items():
            for node in expression.walk():
                if isinstance(node, EventRef) and node.event not in events:
                    if self.allow_undefined_events:
                        undefined_events.add(node.event)
                    else:
                        errors.append(CompletenessError(
                            f"Requirement {key} references undefined event '{node.event}'"))
                elif isinstance(node, AreaReachable) and node.area not in areas:
                    errors.append(CompletenessError(
                        f"Requirement {key} references unknown area '{node.area}'"))
                elif isinstance(node, ItemCount) and items.lookup_identifier(node.item) is None:
                    errors.append(CompletenessError(
                        f"Requirement {key} references unknown item '{node.item}'"))

        for event in sorted(undefined_events):
            self.warn("WLD0201", f"Event '{event}' is referenced but never defined")

        owners = {}
        for kind, entities in (('location', graph.locations), ('exit', graph.exits),
                               ('event', graph.events), ('logic', graph.logic_edges)):
            for entity in entities:
                owners[entity.requirement] = kind
                if entity.requirement not in graph.requirements:
                    errors.append(CompletenessError(
                        f"{kind} {entity.identifier} has no requirement"))
        for key in graph.requirements:
            if key not in owners:
                errors.append(CompletenessError(f"Requirement {key} belongs to nothing"))

        if errors:
            raise CompilationError(errors)
        self.log(f"Completeness check passed: {len(graph.requirements)} requirements")

    def check_unreachable_areas(self, graph: WorldGraph):
        for area in graph.areas:
            if not area.entrances and not area.logic_entrances:
                self.warn("WLD0102", f"Area '{area.name}' has no entrance and no logic entrance")


def write_output(output_dir: str, files: Dict[str, str]):
    """Write generated files, each through a temporary file and a rename."""
    os.makedirs(output_dir, exist_ok=True)
    for filename in sorted(files):
        path = os.path.join(output_dir, filename)
        fd, temp_path = tempfile.mkstemp(dir=output_dir, prefix=f".{filename}.", suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8', newline='\n') as f:
                f.write(files[filename])
            os.replace(temp_path, path)
        except BaseException:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise


def main(argv: Optional[List[str]] = None):
    """Command-line interface for the compiler."""
    import argparse

    parser = argparse.ArgumentParser(
        description='World logic compiler - Compile a world description to Python tables'
    )
    parser.add_argument('manifest', help='World manifest (world.yaml)')
    parser.add_argument('-o', '--output',
                        help='Output package directory (default: generated/ next to the manifest)')
    parser.add_argument('--verbose', action='store_true',
                        help='Verbose output')
    parser.add_argument('--allow-undefined-events', action='store_true',
                        help='Warn instead of failing on references to undefined events')
    parser.add_argument('--no-simplify', action='store_true',
                        help='Emit requirements exactly as compiled')
    parser.add_argument('--check', action='store_true',
                        help='Compile and report errors without writing output')
    parser.add_argument('--package', default='worldc',
                        help='Import path of the runtime package used by generated code')

    args = parser.parse_args(argv)

    compiler = LogicCompiler(verbose=args.verbose,
                             allow_undefined_events=args.allow_undefined_events,
                             simplify=not args.no_simplify,
                             package=args.package)

    success = compiler.compile_file(args.manifest, args.output, check_only=args.check)

    if not args.verbose:
        for warning in compiler.get_warnings():
            print(f"Warning: {warning}", file=sys.stderr)

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
