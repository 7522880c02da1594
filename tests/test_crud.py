# tests/test_crud.py
from propertymap import crud


def test_create_and_get(db):
    obj = crud.create_property(db, {"broker": "Asha Realty", "price": 1000, "city": "Mangaluru"})
    assert obj.id is not None
    fetched = crud.get_property(db, obj.id)
    assert fetched is not None
    assert fetched.broker == "Asha Realty"
    assert fetched.latitude is None


def test_list_is_ordered_by_id(db):
    for city in ("Mumbai", "Bangalore", "Mangaluru"):
        crud.create_property(db, {"city": city, "latitude": 12.0, "longitude": 77.0})
    rows = crud.list_properties(db)
    assert [r.city for r in rows] == ["Mumbai", "Bangalore", "Mangaluru"]
    assert [r.id for r in rows] == sorted(r.id for r in rows)
    assert all(r.latitude is not None and r.longitude is not None for r in rows)


def test_get_missing_returns_none(db):
    assert crud.get_property(db, 999) is None
