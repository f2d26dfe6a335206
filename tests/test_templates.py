"""
Tests for the in-memory template store
"""
import pytest

from services.arena_service.errors import TemplateNotFound, ValidationRejected
from services.arena_service.templates import STARTER_TEMPLATES, TemplateStore, preview


def test_saved_template_is_listed_first(clock):
    store = TemplateStore(clock)
    store.save("Older", "first body")

    template = store.save("Code Review", "Review this code")

    assert store.list()[0].name == "Code Review"
    assert store.list()[0].id == template.id
    assert template.created_at == clock.now


def test_delete_removes_only_that_template(clock):
    store = TemplateStore(clock)
    keep = store.save("Keep", "a")
    gone = store.save("Code Review", "b")

    assert store.delete(gone.id) is True
    assert [t.id for t in store.list()] == [keep.id]


def test_deleting_unknown_id_is_a_noop(clock):
    store = TemplateStore(clock)
    store.save("Code Review", "body")
    before = store.list()

    assert store.delete("tpl-does-not-exist") is False
    assert store.list() == before


@pytest.mark.parametrize("name, body", [("", "body"), ("   ", "body"), ("Name", ""), ("Name", " \n\t ")])
def test_blank_name_or_body_is_rejected(clock, name, body):
    store = TemplateStore(clock)

    with pytest.raises(ValidationRejected):
        store.save(name, body)
    assert len(store) == 0


def test_ids_stay_unique_within_one_clock_tick(clock):
    store = TemplateStore(clock)

    ids = {store.save(f"t{i}", "same instant").id for i in range(50)}

    assert len(ids) == 50


def test_name_is_trimmed_body_is_kept_verbatim(clock):
    store = TemplateStore(clock)

    template = store.save("  Padded  ", "  body with spaces\n")

    assert template.name == "Padded"
    assert template.body == "  body with spaces\n"


def test_load_returns_body_without_consuming_template(clock):
    store = TemplateStore(clock)
    template = store.save("Summary", "Summarize this")

    assert store.load(template.id) == "Summarize this"
    assert store.load(template.id) == "Summarize this"
    assert len(store) == 1


def test_load_unknown_id_raises(clock):
    with pytest.raises(TemplateNotFound):
        TemplateStore(clock).load("missing")


def test_list_returns_a_copy(clock):
    store = TemplateStore(clock)
    store.save("One", "1")

    listing = store.list()
    listing.clear()

    assert len(store) == 1


def test_seed_keeps_starters_newest_first(clock):
    store = TemplateStore(clock)
    store.seed()

    assert [t.name for t in store.list()] == [name for name, _, _ in STARTER_TEMPLATES]
    created = [t.created_at for t in store.list()]
    assert created == sorted(created, reverse=True)


def test_preview_truncates_for_display_only(clock):
    store = TemplateStore(clock)
    body = "x" * 500
    template = store.save("Long", body)

    short = preview(template.body, limit=40)

    assert len(short) == 40
    assert short.endswith("…")
    assert store.load(template.id) == body


def test_preview_leaves_short_bodies_alone():
    assert preview("short") == "short"
