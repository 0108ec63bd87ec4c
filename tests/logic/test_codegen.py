"""
Tests for the code generator.

These tests compile small worlds, write the generated package to a
temporary directory and import it, checking that:
- Enumerations are dense and match the graph
- Static tables hold the graph relations
- The requirement table has one entry per requirement key
- Output is byte-identical across runs
"""

import pytest

from worldc.codegen import CodeGenerator
from worldc.graph.model import WorldGraph
from worldc.model.items import ItemRegistry
from worldc.parser.ast_nodes import (
    And, AreaReachable, EventRef, Fixed, ItemCount, NameRef, Not, OptionRef, Or,
)
from worldc.runtime import ItemCollection, PairedConnection, TimeOfDay

from .conftest import AssertWorld, WorldBuilder


def sample_world():
    return WorldBuilder() \
        .item("Lantern") \
        .counted_item("Key Piece") \
        .macro("canSee", "Lantern | Daylight Option") \
        .area("Cave", "Entrance",
              locations={"Chest": "canSee & Key Piece x2"},
              events={"Open Gate": "Item Lantern"},
              logic_exits={"Depths": "Open Gate"},
              map_exits={"Forest - Clearing (North)": "Nothing"}) \
        .area("Cave", "Depths", force_tod=TimeOfDay.NIGHT) \
        .area("Forest", "Clearing", region="Faron", can_sleep=True,
              map_exits={"Cave - Entrance (North)": "!Area Cave - Depths (night)"}) \
        .door("Cave", "Forest", disambiguation="North", orig={"room": 2})


class TestGeneratedFiles:

    def test_file_set(self):
        files = AssertWorld(sample_world()).compiles().files
        assert sorted(files) == ["__init__.py", "items.py", "logic.py", "requirements.py"]

    def test_header(self):
        files = AssertWorld(sample_world()).compiles().files
        for source in files.values():
            assert "Generated by worldc. Do not edit." in source
            assert source.endswith("\n")

    def test_deterministic(self):
        first = AssertWorld(sample_world()).compiles().files
        second = AssertWorld(sample_world()).compiles().files
        assert first == second

    def test_definition_order_does_not_matter(self):
        forward = sample_world()
        backward = WorldBuilder()
        backward.world.items = list(forward.world.items)
        backward.world.macros = dict(forward.world.macros)
        backward.world.entrances = list(forward.world.entrances)
        for region in reversed(list(forward.world.regions.values())):
            backward.world.regions[region.name] = region
        assert AssertWorld(forward).compiles().files == AssertWorld(backward).compiles().files

    def test_runtime_package_option(self):
        world = sample_world().build()
        assertion = AssertWorld(world).compiles()
        generator = CodeGenerator(assertion.compiler.graph, assertion.compiler.items, package="mygame")
        files = generator.generate()
        assert "from mygame.runtime import PairedConnection, TimeOfDay" in files["logic.py"]
        assert "from mygame.parser.ast_nodes import (" in files["requirements.py"]


class TestGeneratedModules:
    """Tests that import the generated package."""

    @pytest.fixture
    def logic(self, tmp_path):
        return AssertWorld(sample_world()).compiles().load_generated(tmp_path)

    def test_enumerations_are_dense(self, logic):
        for enum in (logic.Region, logic.Stage, logic.Area, logic.Location,
                     logic.Event, logic.Exit, logic.Entrance, logic.Item):
            assert [int(member) for member in enum] == list(range(len(enum)))

    def test_enumeration_members(self, logic):
        assert [r.name for r in logic.Region] == ["Faron", "Overworld"]
        assert [a.name for a in logic.Area] == ["Forest_Clearing", "Cave_Depths", "Cave_Entrance"]
        assert [i.name for i in logic.Item] == ["Lantern", "KeyPiece"]

    def test_item_layout(self, logic):
        assert logic.FLAG_ITEM_COUNT == 1
        assert logic.COUNTED_ITEM_COUNT == 1
        assert logic.ITEM_NAMES == ("Lantern", "Key Piece")
        inventory = logic.new_item_collection()
        assert isinstance(inventory, ItemCollection)
        inventory.collect_multiple(logic.Item.KeyPiece, 2)
        assert inventory.has(logic.Item.KeyPiece, 2)

    def test_area_tables(self, logic):
        Area, Stage = logic.Area, logic.Stage
        assert logic.AREA_NAMES[Area.Cave_Entrance] == "Cave - Entrance"
        assert logic.AREA_STAGE[Area.Forest_Clearing] is Stage.Forest
        assert logic.AREA_POSSIBLE_TOD[Area.Cave_Depths] == TimeOfDay.NIGHT
        assert logic.AREA_CAN_SLEEP[Area.Forest_Clearing] is True
        assert logic.STAGE_AREAS[Stage.Cave] == (Area.Cave_Depths, Area.Cave_Entrance)
        assert logic.REGION_STAGES[logic.Region.Faron] == (Stage.Forest,)
        assert logic.STAGE_REGION[Stage.Cave] is logic.Region.Overworld

    def test_logic_edge_tables(self, logic):
        Area, Key = logic.Area, logic.RequirementKey
        assert logic.AREA_LOGIC_EXITS[Area.Cave_Entrance] == \
            ((Area.Cave_Depths, Key.Cave_Entrance_To_Depths),)
        assert logic.AREA_LOGIC_ENTRANCES[Area.Cave_Depths] == \
            ((Area.Cave_Entrance, Key.Cave_Entrance_To_Depths),)
        assert logic.AREA_LOGIC_EXITS[Area.Cave_Depths] == ()

    def test_exit_tables(self, logic):
        Exit, Entrance, Area = logic.Exit, logic.Entrance, logic.Area
        cave_exit = Exit.Cave_Entrance_Exit_To_Forest_North
        forest_exit = Exit.Forest_Clearing_Exit_To_Cave_North

        assert logic.EXIT_AREA[cave_exit] is Area.Cave_Entrance
        assert logic.EXIT_TO[cave_exit] is Area.Forest_Clearing
        assert logic.EXIT_VANILLA_ENTRANCE[cave_exit] is Entrance.Forest_From_Cave_North
        assert logic.EXIT_COUPLED_ENTRANCE[cave_exit] is Entrance.Cave_From_Forest_North
        assert logic.ENTRANCE_COUPLED_EXIT[Entrance.Cave_From_Forest_North] is cave_exit
        assert logic.EXIT_DISAMBIGUATION[cave_exit] == "North"
        assert logic.EXIT_SHUFFLEABLE[cave_exit] is True
        assert logic.EXIT_SHUFFLEABLE[forest_exit] is False
        assert logic.EXIT_DOOR_CONNECTION[cave_exit] == PairedConnection.none()
        assert logic.ENTRANCE_PATCH_INFO[Entrance.Forest_From_Cave_North] == {"room": 2}
        assert logic.ENTRANCE_EXITS[Entrance.Forest_From_Cave_North] == (cave_exit,)
        assert logic.AREA_ENTRANCES[Area.Forest_Clearing] == (Entrance.Forest_From_Cave_North,)

    def test_coupling_round_trip(self, logic):
        for exit_ in logic.Exit:
            entrance = logic.EXIT_COUPLED_ENTRANCE[exit_]
            if entrance is None:
                continue
            assert logic.ENTRANCE_AREA[entrance] is logic.EXIT_AREA[exit_]
            assert logic.ENTRANCE_COUPLED_EXIT[entrance] is exit_

    def test_every_entity_has_a_requirement(self, logic):
        Key = logic.RequirementKey
        assert set(logic.REQUIREMENTS) == set(Key)
        for key in logic.LOCATION_REQUIREMENT + logic.EVENT_REQUIREMENT + logic.EXIT_REQUIREMENT:
            assert key in logic.REQUIREMENTS

    def test_location_requirement(self, logic):
        Item, Area = logic.Item, logic.Area
        key = logic.LOCATION_REQUIREMENT[logic.Location.Overworld_Chest]
        assert logic.REQUIREMENTS[key] == And((
            AreaReachable(Area.Cave_Entrance, TimeOfDay.BOTH),
            Or((ItemCount(Item.Lantern, 1), OptionRef("Daylight Option"))),
            ItemCount(Item.KeyPiece, 2),
        ))

    def test_event_and_negation(self, logic):
        Area, Key = logic.Area, logic.RequirementKey
        assert logic.REQUIREMENTS[Key.Cave_Entrance_To_Depths] == And((
            AreaReachable(Area.Cave_Entrance, TimeOfDay.BOTH),
            EventRef(logic.Event.OpenGate),
        ))
        assert logic.REQUIREMENTS[Key.Forest_Clearing_Exit_To_Cave_North] == And((
            AreaReachable(Area.Forest_Clearing, TimeOfDay.BOTH),
            Not(AreaReachable(Area.Cave_Depths, TimeOfDay.NIGHT)),
        ))

    def test_event_tables(self, logic):
        event = logic.Event.OpenGate
        assert logic.EVENT_NAMES[event] == "Open Gate"
        assert logic.EVENT_SOURCES[event] == (logic.Area.Cave_Entrance,)


class TestEdgeCases:

    def test_empty_world(self, tmp_path):
        logic = AssertWorld(WorldBuilder()).compiles().load_generated(tmp_path)
        assert len(logic.Area) == 0
        assert logic.REQUIREMENTS == {}
        assert logic.AREA_NAMES == ()

    def test_undefined_event_is_never_true(self, tmp_path):
        world = WorldBuilder().area("Cave", "Entrance", locations={"Chest": "Event Secret"})
        assertion = AssertWorld(world).with_undefined_events().compiles()
        assertion.with_warnings("WLD0201")
        logic = assertion.load_generated(tmp_path)
        assert logic.REQUIREMENTS[logic.RequirementKey.Overworld_Chest] == And((
            AreaReachable(logic.Area.Cave_Entrance, TimeOfDay.BOTH), Fixed(False),
        ))

    def test_without_simplify(self):
        world = WorldBuilder().area("Cave", "Entrance", locations={"Chest": "Nothing"})
        files = AssertWorld(world).without_simplify().compiles().files
        assert "And((AreaReachable(Area.Cave_Entrance, TimeOfDay.BOTH), Fixed(True)))" \
            in files["requirements.py"]

    def test_simplified(self):
        world = WorldBuilder().area("Cave", "Entrance", locations={"Chest": "Nothing"})
        files = AssertWorld(world).compiles().files
        assert "RequirementKey.Overworld_Chest: AreaReachable(Area.Cave_Entrance, TimeOfDay.BOTH)," \
            in files["requirements.py"]

    def test_unresolved_node(self):
        generator = CodeGenerator(WorldGraph(), ItemRegistry([]))
        with pytest.raises(TypeError):
            generator.render(NameRef("canFly"))

    def test_table_labels(self):
        files = AssertWorld(sample_world()).compiles().files
        assert "    Area.Cave_Entrance,  # Cave_Entrance_Exit_To_Forest_North" in files["logic.py"]
