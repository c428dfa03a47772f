import pytest

from farm_dashboard.ingest import (
    IngestError,
    hash_code,
    parse_environment_xml,
    parse_farms_xml,
    parse_live_feed,
    parse_placeables_xml,
    seeded_random,
)
from farm_dashboard.pastures import build_pastures

FARMS_XML = """<?xml version="1.0" encoding="utf-8"?>
<farms>
    <farm farmId="1" name="Green Acres" color="1" loan="0" money="100000">
        <players>
            <player uniqueUserId="abc" farmManager="true"/>
        </players>
        <statistics><farmId>11</farmId></statistics>
    </farm>
    <farm farmId="2" name="Neighbour">
        <players/>
    </farm>
    <farm farmId="3" name="Second Player">
        <players><player uniqueUserId="def"/></players>
    </farm>
</farms>
"""

PLACEABLES_XML = """<?xml version="1.0" encoding="utf-8"?>
<placeables>
    <placeable uniqueId="barn01" name="Main Barn" farmId="1" filename="data/placeables/cowBarnBig.xml">
        <husbandryAnimals>
            <clusters>
                <animal id="101" name="Bella" age="36" health="92.5" weight="610" gender="FEMALE"
                        subType="COW_HOLSTEIN" isPregnant="true" isLactating="false" reproduction="0.5">
                    <genetics metabolism="1.1" quality="1.2" health="0.9" fertility="1.0" productivity="1.05"/>
                </animal>
                <animal id="102" name="Bruno" age="48" health="100" weight="980" gender="male" subType="BULL_HOLSTEIN"/>
                <animal name="No Id"/>
            </clusters>
        </husbandryAnimals>
        <husbandryFood capacity="2000">
            <fillLevel fillType="FORAGE" fillLevel="100"/>
            <fillLevel fillType="DRYGRASS_WINDROW" fillLevel="900"/>
        </husbandryFood>
    </placeable>
    <placeable uniqueId="fence01" name="Sheep Meadow" farmId="1" filename="data/placeables/fence.xml">
        <husbandryAnimals maxNumAnimals="40">
            <clusters>
                <animal id="201" age="12" health="80" subType="SHEEP_LANDRACE" gender="female"/>
            </clusters>
        </husbandryAnimals>
        <husbandryFence>
            <fence>
                <segment start="0 10 0" end="100 10 0"/>
                <segment start="100 10 0" end="100 10 100"/>
                <segment start="100 10 100" end="0 10 100"/>
                <segment start="0 10 100" end="0 10 0"/>
            </fence>
        </husbandryFence>
    </placeable>
    <placeable uniqueId="barn02" name="Other Barn" farmId="2" filename="data/placeables/pigBarn.xml">
        <husbandryAnimals>
            <clusters><animal id="301" subType="PIG_LANDRACE"/></clusters>
        </husbandryAnimals>
    </placeable>
    <placeable uniqueId="silo01" name="Silo" farmId="1" filename="data/placeables/silo.xml"/>
</placeables>
"""

ENVIRONMENT_XML = """<?xml version="1.0" encoding="utf-8"?>
<environment>
    <dayTime>750.5</dayTime>
    <currentDay>42</currentDay>
</environment>
"""


def test_player_farms():
    farms = parse_farms_xml(FARMS_XML)
    assert [f.id for f in farms] == ["1", "3"]
    assert farms[0].internal_id == "11"
    assert farms[0].name == "Green Acres"
    assert farms[0].is_default and not farms[1].is_default
    assert farms[1].internal_id == "3"


def test_placeables_for_one_farm():
    farm = parse_farms_xml(FARMS_XML)[0]
    animals, placeables = parse_placeables_xml(PLACEABLES_XML, farm)

    assert [a.id for a in animals] == ["101", "102", "201"]
    bella = animals[0]
    assert bella.health == 92.5
    assert bella.gender == "female"
    assert bella.is_pregnant is True
    assert bella.type == "COW"
    assert bella.location == "Main Barn"
    assert bella.location_type == "Livestock Building"
    assert bella.pasture_id == "barn01"
    assert bella.genetics.quality == 1.2

    assert animals[1].genetics is None

    barn, meadow = placeables
    assert barn.unique_id == "barn01"
    assert barn.capacity_attribute is None
    assert barn.food.total_capacity == 2000
    assert barn.food.mixed_ration == 100
    assert barn.food.hay == 900
    assert meadow.capacity_attribute == 40
    assert meadow.fence_points == [[0, 0], [100, 0], [100, 100], [0, 100]]
    assert meadow.food is None


def test_placeables_without_farm_reads_everything():
    animals, placeables = parse_placeables_xml(PLACEABLES_XML)
    assert len(animals) == 4
    assert [p.unique_id for p in placeables] == ["barn01", "fence01", "barn02"]


def test_pastures_from_placeables():
    farm = parse_farms_xml(FARMS_XML)[0]
    animals, placeables = parse_placeables_xml(PLACEABLES_XML, farm)

    barn, meadow = build_pastures(animals, placeables)

    assert barn.capacity == 80
    assert barn.capacity_info.source == "building_type"
    assert meadow.capacity == 40
    assert meadow.capacity_info.source == "attribute"
    assert [w.message for w in barn.all_warnings if w.type == "food"] == [
        "Low mixedRation: 5% remaining",
        "Low silage: 0% remaining",
        "Low grass: 0% remaining",
    ]


def test_environment():
    game_time = parse_environment_xml(ENVIRONMENT_XML)
    assert game_time.current_day == 42
    assert game_time.day_time == 750.5
    assert game_time.display() == "Day 42 - 12:30"

    assert parse_environment_xml("<environment><weather/></environment>") is None


def test_malformed_xml_raises():
    with pytest.raises(IngestError):
        parse_placeables_xml("<placeables><placeable>")


def test_hash_code_matches_string_hash():
    assert hash_code("") == 0
    assert hash_code("a") == 97
    assert hash_code("abc") == 96354
    assert hash_code("hello world") == 1794106052


def test_seeded_random_is_repeatable():
    first = seeded_random(42)
    second = seeded_random(42)
    values = [first() for _ in range(5)]
    assert values == [second() for _ in range(5)]
    assert all(0 <= v < 1 for v in values)


def live_document():
    return {
        "gameTime": {"currentDay": 7, "dayTime": 360},
        "farmInfo": {"id": 1, "name": "Green Acres"},
        "vehicles": [{"name": "Tractor"}],
        "animals": {
            "husbandries": [
                {
                    "id": 5,
                    "name": "Cow Barn",
                    "ownerFarmId": 1,
                    "maxNumAnimals": 30,
                    "animals": [
                        {"id": "c1", "uniqueId": "u1", "name": "Rosie", "subType": "COW_ANGUS",
                         "age": 30, "health": 88, "weight": 640, "gender": "female", "isPregnant": True},
                        {"subType": "COW_HOLSTEIN", "numAnimals": 25, "age": 20},
                    ],
                },
                {"id": 6, "name": "Sheep Field", "animalCount": 3},
            ]
        },
    }


def test_live_feed_shapes():
    feed = parse_live_feed(live_document())

    rosie = feed.animals[0]
    assert rosie.id == "c1"
    assert rosie.synthetic is False
    assert rosie.is_pregnant is True
    assert rosie.pasture_id == "5"

    grouped = [a for a in feed.animals if a.sub_type == "COW_HOLSTEIN"]
    assert len(grouped) == 25
    assert grouped[0].id == "5-COW_HOLSTEIN-0"
    assert [a.gender for a in grouped].count("male") == 1
    assert grouped[0].gender == "male"
    assert all(a.synthetic and not a.is_pregnant and not a.is_lactating for a in grouped)
    assert all(a.age == 20 for a in grouped)
    assert all(85 <= a.health <= 100 for a in grouped)

    counted = [a for a in feed.animals if a.pasture_id == "6"]
    assert [a.id for a in counted] == ["6-0", "6-1", "6-2"]
    assert all(12 <= a.age < 60 for a in counted)

    assert [p.unique_id for p in feed.placeables] == ["5", "6"]
    assert feed.placeables[0].capacity_attribute == 30
    assert feed.farms[0].id == "1"
    assert feed.game_time.current_day == 7


def test_live_feed_is_deterministic():
    first = parse_live_feed(live_document())
    second = parse_live_feed(live_document())
    assert [a.model_dump() for a in first.animals] == [a.model_dump() for a in second.animals]


def test_live_feed_accepts_relay_message():
    feed = parse_live_feed({"type": "data", "data": live_document()})
    assert len(feed.animals) == 29


def test_live_feed_must_be_an_object():
    with pytest.raises(IngestError):
        parse_live_feed(["not", "a", "document"])


def test_hash_code_counts_utf16_units():
    # one emoji is two UTF-16 units: 0xD83D, 0xDE00
    assert hash_code("\U0001F600") == 0xD83D * 31 + 0xDE00
    assert hash_code("\U0001F600") == 1772899
