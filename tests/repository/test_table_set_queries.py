from sqlalchemy import MetaData
from sqlalchemy.exc import OperationalError

import pytest

from tableset.domain import PageList
from tableset.repository.table_set import page_offset


def test_to_list_returns_records(seeded_users, user_model):
    rows = seeded_users.to_list()
    assert len(rows) == 5
    assert all(isinstance(r, user_model) for r in rows)
    alice = [r for r in rows if r.name == "alice"][0]
    assert alice.nick == "al"
    assert alice.age == 20


def test_chaining_does_not_mutate_receiver(seeded_users):
    adults = seeded_users.where("age >= :min_age", min_age=30)
    assert len(adults.to_list()) == 3
    assert len(seeded_users.to_list()) == 5


def test_sequential_calls_keep_state(seeded_users):
    q = seeded_users.where({"active": True})
    q = q.desc("age")
    assert [u.name for u in q.to_list()] == ["erin", "carol", "alice"]


def test_where_with_expression_and_dict(seeded_users, user_model):
    q = seeded_users.where(user_model.age > 20, {"active": False})
    assert [u.name for u in q.to_list()] == ["bob", "dave"]


def test_where_dict_resolves_attribute_names(seeded_users):
    assert seeded_users.where({"nick": "al"}).to_entity().name == "alice"


def test_order_asc_desc(seeded_users, user_model):
    assert [u.age for u in seeded_users.desc("age").to_list()] == [40, 35, 30, 25, 20]
    assert [u.name for u in seeded_users.asc("name").to_list()][0] == "alice"
    assert seeded_users.order("age desc").to_entity().name == "erin"
    assert seeded_users.order(user_model.name.desc()).to_entity().name == "erin"


def test_select_limits_loaded_attributes(seeded_users):
    rows = seeded_users.select("name, age").asc("age").to_list()
    assert rows[0].name == "alice"
    assert rows[0].age == 20
    assert rows[0].score is None
    assert rows[0].user_id is None


def test_page_offset():
    assert page_offset(10, 2) == 10
    assert page_offset(10, 1) == 0


def test_to_page_list(seeded_users):
    page = seeded_users.asc("age").to_page_list(2, 2)
    assert isinstance(page, PageList)
    assert [u.name for u in page.items] == ["carol", "dave"]
    assert page.total_count == 5
    assert page.page_count == 3
    last = seeded_users.asc("age").to_page_list(2, 3)
    assert [u.name for u in last] == ["erin"]


def test_to_page_list_total_respects_filter(seeded_users):
    page = seeded_users.where({"active": True}).asc("age").to_page_list(10, 1)
    assert len(page) == 3
    assert page.total_count == 3


def test_to_entity_orders_by_primary_key(seeded_users):
    assert seeded_users.to_entity().name == "alice"


def test_to_entity_missing_returns_none(seeded_users):
    assert seeded_users.where({"name": "nobody"}).to_entity() is None


def test_count_and_is_exists(seeded_users):
    active = seeded_users.where({"active": True})
    assert active.count() == 3
    assert active.is_exists() is True
    nobody = seeded_users.where("age > :age", age=100)
    assert nobody.count() == 0
    assert nobody.is_exists() is False


def test_scalar_getters(seeded_users):
    alice = seeded_users.where({"name": "alice"})
    assert alice.get_string("name") == "alice"
    assert alice.get_int("age") == 20
    assert alice.get_long("age") == 20
    assert alice.get_bool("active") is True
    assert alice.get_float64("score") == 1.5
    assert alice.get_float32("score") == 1.5
    assert alice.get_string("nick") == "al"


def test_scalar_getters_follow_order(seeded_users):
    assert seeded_users.desc("age").get_string("name") == "erin"


def test_scalar_getters_return_zero_values_when_no_row(users):
    assert users.count() == 0
    assert users.get_int("age") == 0
    assert users.get_long("age") == 0
    assert users.get_string("name") == ""
    assert users.get_bool("active") is False
    assert users.get_float32("score") == 0.0
    assert users.get_float64("score") == 0.0


def test_scalar_getter_null_value_is_zero(seeded_users):
    assert seeded_users.where({"name": "dave"}).get_float64("score") == 0.0


def test_float32_getter_rounds_to_single_precision(db_context, users, user_model):
    users.insert(user_model(name="pi", score=3.141592653589793))
    value = users.get_float32("score")
    assert value != 3.141592653589793
    assert value == pytest.approx(3.1415927, rel=1e-7)


def test_malformed_where_fails_at_execution(seeded_users):
    q = seeded_users.where("age >>> 3")
    with pytest.raises(OperationalError):
        q.to_list()


def test_set_table_name_after_open_retargets(db_context, seeded_users, user_model):
    archive = user_model.__table__.to_metadata(MetaData(), name="users_archive")
    archive.create(db_context.engine)

    users = db_context.table(user_model)
    assert users.count() == 5
    assert users.is_open

    users.set_table_name("users_archive")
    assert users.table_name == "users_archive"
    assert users.count() == 0

    users.insert(user_model(name="zed", age=99))
    assert [u.name for u in users.to_list()] == ["zed"]
    assert users.where({"name": "zed"}).get_int("age") == 99
    assert db_context.table(user_model).count() == 5


def test_set_table_name_before_open(db_context, seeded_users, user_model):
    archive = user_model.__table__.to_metadata(MetaData(), name="users_old")
    archive.create(db_context.engine)
    users = db_context.table(user_model).set_table_name("users_old")
    assert not users.is_open
    assert users.to_list() == []


def test_expressions_adapt_to_renamed_table(db_context, user_model):
    archive = user_model.__table__.to_metadata(MetaData(), name="users_history")
    archive.create(db_context.engine)
    history = db_context.table(user_model, "users_history")
    history.insert_batch([
        user_model(name="old", age=70),
        user_model(name="older", age=80),
        user_model(name="young", age=10),
    ])

    assert [u.name for u in history.where(user_model.age > 50).order(user_model.age.desc()).to_list()] == ["older", "old"]
    assert history.where(user_model.name == "young").get_int("age") == 10
    assert db_context.table(user_model).count() == 0


def test_renamed_table_is_built_once_per_context(db_context, user_model):
    first = db_context.renamed_table(user_model.__table__, "users_copy")
    assert db_context.renamed_table(user_model.__table__, "users_copy") is first
    assert first.name == "users_copy"
    assert set(first.c.keys()) == set(user_model.__table__.c.keys())


def test_get_bool_parses_text_values(seeded_users):
    seeded_users.where({"name": "alice"}).update_value("nick", "false")
    seeded_users.where({"name": "bob"}).update_value("nick", "TRUE")
    seeded_users.where({"name": "carol"}).update_value("nick", "0")
    seeded_users.where({"name": "dave"}).update_value("nick", "yes please")
    assert seeded_users.where({"name": "alice"}).get_bool("nick") is False
    assert seeded_users.where({"name": "bob"}).get_bool("nick") is True
    assert seeded_users.where({"name": "carol"}).get_bool("nick") is False
    assert seeded_users.where({"name": "dave"}).get_bool("nick") is False
    assert seeded_users.where({"name": "erin"}).get_bool("active") is True
