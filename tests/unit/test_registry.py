import pytest

from tzbot.exceptions import AliasConflict, DuplicateCity, LastCityError
from tzbot.utils.registry import City, CityList


def three_cities():
    return CityList(
        [
            City("Paris", "Europe/Paris", ["p"], 1),
            City("Yerevan", "Asia/Yerevan", ["e"], 2),
            City("Moscow", "Europe/Moscow", ["m", "msk"], 3),
        ]
    )


def test_default_list_has_ranked_cities():
    cities = CityList.default()
    assert [c.rank for c in cities] == list(range(1, len(cities) + 1))
    assert cities.find_by_alias("p").name == "Paris"
    assert cities.find_by_alias("П").name == "Paris"


def test_find_by_alias_is_case_insensitive():
    cities = three_cities()
    assert cities.find_by_alias("MSK").name == "Moscow"
    assert cities.find_by_alias("x") is None


def test_find_prefers_alias_then_name():
    cities = three_cities()
    assert cities.find("e").name == "Yerevan"
    assert cities.find("moscow").name == "Moscow"
    assert cities.find("London") is None


def test_add_appends_with_next_rank():
    cities = three_cities()
    added = cities.add(City("London", "Europe/London", ["L", "lon"]))
    assert added.rank == 4
    assert added.aliases == ["l", "lon"]
    assert cities.find_by_alias("lon") is added


def test_add_rejects_shared_alias_and_leaves_list_unchanged():
    cities = three_cities()
    before = cities.to_records()
    with pytest.raises(AliasConflict) as exc:
        cities.add(City("Madrid", "Europe/Madrid", ["mad", "M"]))
    assert exc.value.conflicts == {"m": "Moscow"}
    assert cities.to_records() == before


def test_add_rejects_duplicate_name():
    cities = three_cities()
    with pytest.raises(DuplicateCity):
        cities.add(City("PARIS", "Europe/Paris", ["pa"]))
    assert len(cities) == 3


def test_conflicts_lists_owner_of_each_taken_code():
    cities = three_cities()
    taken = cities.conflicts(["l", "P", "msk"])
    assert {code: c.name for code, c in taken.items()} == {"p": "Paris", "msk": "Moscow"}


def test_remove_last_city_fails():
    cities = CityList([City("Paris", "Europe/Paris", ["p"], 1)])
    with pytest.raises(LastCityError):
        cities.remove(cities.find_by_alias("p"))
    assert len(cities) == 1


def test_remove_many_is_all_or_nothing():
    cities = three_cities()
    with pytest.raises(LastCityError):
        cities.remove_many(list(cities))
    assert len(cities) == 3
    removed = cities.remove_many([cities.find_by_alias("p"), cities.find_by_alias("e")])
    assert [c.name for c in removed] == ["Paris", "Yerevan"]
    assert [c.name for c in cities] == ["Moscow"]


def test_ranks_not_renumbered_after_removal():
    cities = three_cities()
    cities.remove(cities.find_by_alias("e"))
    assert [c.rank for c in cities] == [1, 3]
    assert cities.add(City("Tokyo", "Asia/Tokyo", ["t"])).rank == 4


def test_records_round_trip():
    cities = three_cities()
    again = CityList.from_records(cities.to_records())
    assert again.to_records() == cities.to_records()
    assert again.alias_key == ("e", "m", "msk", "p")
