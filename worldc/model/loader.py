"""
World description loader.

Reads the manifest and the files it names with PyYAML. Files are composed
into node trees rather than loaded into plain objects so that every schema
error can point at the exact file, line and column, and so that duplicate
mapping keys are caught instead of silently overwritten.
"""

import os
import sys
from typing import Any, Dict, List, Optional, Tuple

import yaml
from yaml.constructor import ConstructorError, SafeConstructor
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from ..errors import LoadError
from ..runtime.connection import DoorSide
from ..runtime.timeofday import TimeOfDay
from .items import ItemKind
from .world import AreaDef, EntranceTableEntry, ItemEntry, RegionDef, StageDef, World

NULL_TAG = 'tag:yaml.org,2002:null'
BOOL_TAG = 'tag:yaml.org,2002:bool'

REGION_KEYS = {'force-tod', 'stages'}
STAGE_KEYS = {'force-tod', 'areas'}
AREA_KEYS = {
    'force-tod', 'can-sleep', 'locations', 'events',
    'map-exits', 'logic-exits', 'macros',
}
ITEM_KEYS = {'id', 'name', 'type', 'oarc', 'getarcname', 'getmodelname'}
ENTRANCE_KEYS = {'stage', 'to-stage', 'disambiguation', 'door', 'orig', 'scens'}
MANIFEST_KEYS = {'world', 'macros', 'items', 'entrances'}


def normalize_key(key: str) -> str:
    """Schema keys may be written kebab-case or snake_case."""
    return key.replace('_', '-')


class YamlFile:
    """One composed YAML file plus helpers that turn nodes into values."""

    def __init__(self, path: str):
        self.path = path
        self.constructor = SafeConstructor()
        try:
            with open(path, encoding='utf-8') as f:
                self.root = yaml.compose(f, Loader=yaml.SafeLoader)
        except OSError as e:
            raise LoadError(f"Cannot read file: {e.strerror}", path)
        except yaml.MarkedYAMLError as e:
            mark = e.problem_mark or e.context_mark
            message = e.problem or e.context or "YAML syntax error"
            if mark is not None:
                raise LoadError(message, path, mark.line + 1, mark.column + 1)
            raise LoadError(message, path)
        except yaml.YAMLError as e:
            raise LoadError(str(e), path)

    def error(self, node: Optional[Node], message: str) -> LoadError:
        if node is None:
            return LoadError(message, self.path)
        mark = node.start_mark
        return LoadError(message, self.path, mark.line + 1, mark.column + 1)

    def where(self, node: Node) -> str:
        return f"{self.path}:{node.start_mark.line + 1}"

    def is_null(self, node: Optional[Node]) -> bool:
        return node is None or (isinstance(node, ScalarNode) and node.tag == NULL_TAG)

    def mapping(self, node: Optional[Node], what: str,
                allowed: Optional[set] = None) -> List[Tuple[str, Node, Node]]:
        """
        Read a mapping as ordered (key, key_node, value_node) triples.

        A null node is an empty mapping. Non-string keys, duplicate keys and,
        when `allowed` is given, unknown keys are errors.
        """
        if self.is_null(node):
            return []
        if not isinstance(node, MappingNode):
            raise self.error(node, f"{what} must be a mapping")
        entries = []
        seen = {}
        for key_node, value_node in node.value:
            if not isinstance(key_node, ScalarNode):
                raise self.error(key_node, f"{what} keys must be strings")
            key = key_node.value
            if allowed is not None:
                key = normalize_key(key)
                if key not in allowed:
                    expected = ', '.join(sorted(allowed))
                    raise self.error(key_node, f"Unknown key '{key_node.value}' in {what} "
                                               f"(expected one of: {expected})")
            if key in seen:
                line = seen[key].start_mark.line + 1
                raise self.error(key_node, f"Duplicate key '{key_node.value}' in {what} "
                                           f"(first defined on line {line})")
            seen[key] = key_node
            entries.append((key, key_node, value_node))
        return entries

    def sequence(self, node: Optional[Node], what: str) -> List[Node]:
        if self.is_null(node):
            return []
        if not isinstance(node, SequenceNode):
            raise self.error(node, f"{what} must be a list")
        return list(node.value)

    def string(self, node: Optional[Node], what: str) -> str:
        if node is None or not isinstance(node, ScalarNode) or self.is_null(node):
            raise self.error(node, f"{what} must be a string")
        return node.value

    def optional_string(self, node: Optional[Node], what: str) -> Optional[str]:
        if self.is_null(node):
            return None
        return self.string(node, what)

    def boolean(self, node: Optional[Node], what: str) -> bool:
        if self.is_null(node):
            return False
        if not isinstance(node, ScalarNode) or node.tag != BOOL_TAG:
            raise self.error(node, f"{what} must be true or false")
        return self.constructor.construct_object(node, deep=True)

    def plain(self, node: Optional[Node]) -> Any:
        """Construct an arbitrary value (metadata we carry but do not interpret)."""
        if node is None:
            return None
        try:
            return self.constructor.construct_object(node, deep=True)
        except ConstructorError as e:
            raise self.error(node, e.problem or str(e))

    def string_map(self, node: Optional[Node], what: str) -> Dict[str, str]:
        """Read a string -> requirement text mapping, keeping file order."""
        result = {}
        for key, _, value_node in self.mapping(node, what):
            if self.is_null(value_node):
                raise self.error(value_node, f"Missing requirement for '{key}' in {what}")
            result[key] = self.string(value_node, f"Requirement for '{key}' in {what}")
        return result

    def force_tod(self, node: Optional[Node], what: str) -> Optional[TimeOfDay]:
        text = self.optional_string(node, f"force-tod of {what}")
        if text is None:
            return None
        tod = TimeOfDay.__members__.get(text.strip().upper())
        if tod is None or tod is TimeOfDay.BOTH:
            raise self.error(node, f"force-tod of {what} must be Day or Night, got '{text}'")
        return tod

    def require(self, fields: Dict[str, Node], key: str, parent: Node, what: str) -> Node:
        if key not in fields:
            raise self.error(parent, f"Missing required key '{key}' in {what}")
        return fields[key]


class Loader:
    """Loads a world description from a manifest and the files it names."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def log(self, message: str):
        if self.verbose:
            print(f"[load] {message}", file=sys.stderr)

    def load_manifest(self, path: str) -> World:
        """
        Load every file named by a manifest.

        Manifest format:
            world: [file, ...]     # world files, merged
            macros: file           # global macros
            items: file            # item catalog
            entrances: file        # optional physical entrance table
        """
        manifest = YamlFile(path)
        base = os.path.dirname(os.path.abspath(path))
        fields = {key: value for key, _, value in
                  manifest.mapping(manifest.root, "manifest", MANIFEST_KEYS)}

        def resolve(node: Node, what: str) -> str:
            return os.path.join(base, manifest.string(node, what))

        world_node = manifest.require(fields, 'world', manifest.root, "manifest")
        if isinstance(world_node, ScalarNode):
            world_files = [resolve(world_node, "world file")]
        else:
            world_files = [resolve(node, "world file")
                           for node in manifest.sequence(world_node, "world files")]

        world = World()
        for world_file in world_files:
            self.load_world_file(world_file, world)

        world.macros = self.load_macros(
            resolve(manifest.require(fields, 'macros', manifest.root, "manifest"), "macro file"))
        world.items = self.load_items(
            resolve(manifest.require(fields, 'items', manifest.root, "manifest"), "item catalog"))
        if not manifest.is_null(fields.get('entrances')):
            world.entrances = self.load_entrances(resolve(fields['entrances'], "entrance table"))

        self.log(f"Loaded {len(world.regions)} regions, {len(world.area_keys())} areas, "
                 f"{len(world.macros)} macros, {len(world.items)} items, "
                 f"{len(world.entrances)} entrance table entries")
        return world

    def load_world_file(self, path: str, world: World) -> World:
        """Load Region -> Stage -> Area definitions from one file into `world`."""
        f = YamlFile(path)
        self.log(f"Reading world file {path}")

        for region_name, key_node, region_node in f.mapping(f.root, "world file"):
            if region_name in world.regions:
                raise f.error(key_node, f"Region '{region_name}' is defined in more than one file")
            region = self._read_region(f, region_name, region_node)
            for stage_name in region.stages:
                for other in world.regions.values():
                    if stage_name in other.stages:
                        raise f.error(key_node, f"Stage '{stage_name}' is defined in regions "
                                                f"'{other.name}' and '{region_name}'")
            world.regions[region_name] = region
        return world

    def _read_region(self, f: YamlFile, name: str, node: Node) -> RegionDef:
        what = f"region '{name}'"
        fields = {key: value for key, _, value in f.mapping(node, what, REGION_KEYS)}
        region = RegionDef(name, f.force_tod(fields.get('force-tod'), what), source=f.where(node))
        for stage_name, _, stage_node in f.mapping(fields.get('stages'), f"stages of {what}"):
            region.stages[stage_name] = self._read_stage(f, stage_name, stage_node)
        return region

    def _read_stage(self, f: YamlFile, name: str, node: Node) -> StageDef:
        what = f"stage '{name}'"
        fields = {key: value for key, _, value in f.mapping(node, what, STAGE_KEYS)}
        stage = StageDef(name, f.force_tod(fields.get('force-tod'), what), source=f.where(node))
        for area_name, _, area_node in f.mapping(fields.get('areas'), f"areas of {what}"):
            stage.areas[area_name] = self._read_area(f, f"{name} - {area_name}", area_name, area_node)
        return stage

    def _read_area(self, f: YamlFile, full_name: str, name: str, node: Node) -> AreaDef:
        what = f"area '{full_name}'"
        fields = {key: value for key, _, value in f.mapping(node, what, AREA_KEYS)}
        return AreaDef(
            name=name,
            force_tod=f.force_tod(fields.get('force-tod'), what),
            can_sleep=f.boolean(fields.get('can-sleep'), f"can-sleep of {what}"),
            locations=f.string_map(fields.get('locations'), f"locations of {what}"),
            events=f.string_map(fields.get('events'), f"events of {what}"),
            map_exits=f.string_map(fields.get('map-exits'), f"map-exits of {what}"),
            logic_exits=f.string_map(fields.get('logic-exits'), f"logic-exits of {what}"),
            macros=f.string_map(fields.get('macros'), f"macros of {what}"),
            source=f.where(node),
        )

    def load_macros(self, path: str) -> Dict[str, str]:
        """Load the global macro file: macro name -> requirement text, in file order."""
        f = YamlFile(path)
        return f.string_map(f.root, "macro file")

    def load_items(self, path: str) -> List[ItemEntry]:
        """Load the item catalog in file order."""
        f = YamlFile(path)
        items = []
        for node in f.sequence(f.root, "item catalog"):
            fields = {key: value for key, _, value in f.mapping(node, "item entry", ITEM_KEYS)}
            name = f.string(f.require(fields, 'name', node, "item entry"), "Item name")
            type_node = f.require(fields, 'type', node, f"item '{name}'")
            try:
                kind = ItemKind.from_catalog_type(f.string(type_node, f"type of item '{name}'"))
            except ValueError as e:
                raise f.error(type_node, f"{e} (expected Single, Counted or Consumable)")
            id_hint = f.plain(fields.get('id'))
            if id_hint is not None and not isinstance(id_hint, int):
                raise f.error(fields['id'], f"id of item '{name}' must be an integer")
            metadata = {key: f.plain(value) for key, value in fields.items()
                        if key not in ('id', 'name', 'type')}
            items.append(ItemEntry(name, kind, id_hint, metadata))
        return items

    def load_entrances(self, path: str) -> List[EntranceTableEntry]:
        """Load the physical entrance table used for door pairing."""
        f = YamlFile(path)
        entries = []
        for node in f.sequence(f.root, "entrance table"):
            fields = {key: value for key, _, value in
                      f.mapping(node, "entrance entry", ENTRANCE_KEYS)}
            stage = f.string(f.require(fields, 'stage', node, "entrance entry"), "stage")
            to_stage = f.string(f.require(fields, 'to-stage', node, "entrance entry"), "to-stage")
            door_node = fields.get('door')
            try:
                door = DoorSide.parse(f.optional_string(door_node, "door"))
            except ValueError as e:
                raise f.error(door_node, f"{e} (expected Near, Far, Left or Right)")
            orig = f.plain(fields.get('orig')) or {}
            scens = f.plain(fields.get('scens')) or []
            if not isinstance(orig, dict):
                raise f.error(fields['orig'], "orig must be a mapping")
            if not isinstance(scens, list):
                raise f.error(fields['scens'], "scens must be a list")
            entries.append(EntranceTableEntry(
                stage=stage,
                to_stage=to_stage,
                disambiguation=f.optional_string(fields.get('disambiguation'), "disambiguation"),
                door=door,
                orig=orig,
                scens=scens,
                source=f.where(node),
            ))
        return entries


def load_world(manifest_path: str, verbose: bool = False) -> World:
    """Convenience function to load a world from its manifest."""
    return Loader(verbose).load_manifest(manifest_path)
