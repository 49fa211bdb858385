from ayuda.core.categories import CATEGORIES, find_category, guidance_for
from ayuda.core.classifier import RULES


def _all(categories):
    for cat in categories:
        yield cat
        yield from _all(cat.subcategories)


def test_every_category_points_at_a_rule():
    keys = {r.category for r in RULES}
    for cat in _all(CATEGORIES):
        assert cat.rule in keys, cat.id


def test_category_ids_are_unique():
    ids = [c.id for c in _all(CATEGORIES)]
    assert len(ids) == len(set(ids))


def test_find_top_level_and_subcategory():
    assert find_category("quemaduras").is_top_level
    sub = find_category("rcp_bebes")
    assert sub.parent_id == "rcp"
    assert not sub.is_top_level
    assert find_category("nope") is None


def test_guidance_for_category():
    guidance = guidance_for(find_category("quemaduras"))
    assert guidance.category == "burns"
    assert guidance.severity == "low"
    assert guidance.source == "classifier"


def test_guidance_for_subcategory_uses_its_rule():
    guidance = guidance_for(find_category("atragantamiento_bebes"))
    assert guidance.category == "choking"
    assert guidance.should_call_emergency is True
