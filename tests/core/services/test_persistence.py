import pytest

from pagetree_toolkit.core.models import (
    APPEND_ORDER,
    DropIntent,
    PageMutation,
    PageNode,
    RootTarget,
    RowTarget,
    SectionTarget,
)
from pagetree_toolkit.core.services.drop_zone_service import DropZoneClassifier
from pagetree_toolkit.core.services.order_service import OrderRecalculator
from pagetree_toolkit.core.services.persistence import InMemoryPageStore, PersistenceGateway
from pagetree_toolkit.core.services.tree_analysis import is_cycle_target

ROW_HEIGHT = 40.0
PROBE_OFFSETS = (0.0, 10.0, 20.0, 30.0, 39.0)


def ids(nodes):
    return [n.id for n in nodes]


def reachable_intents(classifier, tree, dragged_id, target_id):
    """Every intent the classifier grants for some pointer offset over the row."""
    found = []
    for offset in PROBE_OFFSETS:
        intent = classifier.classify_row(tree, dragged_id, target_id, offset, ROW_HEIGHT)
        if intent is not None and intent not in found:
            found.append(intent)
    return found


def all_drops(tree, sections=("s1", "s2")):
    classifier = DropZoneClassifier()
    for dragged in ids(tree):
        yield dragged, RootTarget()
        for section_id in sections:
            yield dragged, SectionTarget(section_id)
        for target in ids(tree):
            if is_cycle_target(tree, dragged, target):
                continue
            for intent in reachable_intents(classifier, tree, dragged, target):
                yield dragged, RowTarget(target, intent)


@pytest.fixture
def store(sample_tree):
    return InMemoryPageStore.from_tree(sample_tree)


def test_store_is_a_gateway(store):
    assert isinstance(store, PersistenceGateway)


def test_load_normalises_sibling_orders():
    store = InMemoryPageStore([
        PageNode("x", order=10),
        PageNode("y", order=3),
        PageNode("n", parent_id="x", order=7, section_id="s1"),
    ])
    tree = store.fetch_tree()
    assert [(n.id, n.order) for n in tree.roots] == [("y", 0), ("x", 1)]
    assert tree.get("n").order == 0
    assert tree.get("n").section_id is None


def test_fetch_returns_independent_snapshots(store):
    first = store.fetch_tree()
    store.commit(PageMutation("d", 0, None, None))
    assert ids(first.roots) == ["a", "b", "c", "d"]
    assert ids(store.fetch_tree().roots) == ["d", "a", "b", "c"]


def test_commit_reorders_within_parent(store):
    result = store.commit(PageMutation("d", 1, None, "s1"))
    assert result.success
    assert ids(store.fetch_tree().roots) == ["a", "d", "b", "c"]


def test_commit_moves_across_parents(store):
    result = store.commit(PageMutation("c1", 1, "b", None))
    assert result.success
    tree = store.fetch_tree()
    assert ids(tree.children_of("b")) == ["b1", "c1", "b2"]
    assert [n.order for n in tree.children_of("b")] == [0, 1, 2]
    assert tree.children_of("c") == []


def test_commit_append_and_clamp(store):
    assert store.commit(PageMutation("a", APPEND_ORDER, "c", None)).success
    assert ids(store.fetch_tree().children_of("c")) == ["c1", "a"]
    assert store.commit(PageMutation("b2", -4, None, None)).success
    assert ids(store.fetch_tree().roots)[0] == "b2"


def test_commit_sets_and_clears_sections(store):
    store.commit(PageMutation("c", 0, "a", None))
    assert store.fetch_tree().get("c").section_id is None
    store.commit(PageMutation("b1x", APPEND_ORDER, None, "s2"))
    assert store.fetch_tree().get("b1x").section_id == "s2"


def test_commit_rejects_unknown_page(store):
    result = store.commit(PageMutation("ghost", 0, None, None))
    assert not result.success
    assert "not found" in result.message


def test_commit_rejects_unknown_parent(store):
    result = store.commit(PageMutation("a", 0, "ghost", None))
    assert not result.success
    assert result.details == {"parent_id": "ghost"}


def test_commit_rejects_cycle(store, sample_tree):
    for parent in ("b", "b1", "b1x"):
        result = store.commit(PageMutation("b", 0, parent, None))
        assert not result.success
    assert store.fetch_tree().to_records() == sample_tree.to_records()


def test_commit_rejects_depth_overflow(store):
    result = store.commit(PageMutation("c", APPEND_ORDER, "b1", None))
    assert not result.success
    assert result.details["max_depth"] == 2
    assert store.fetch_tree().get("c").parent_id is None


def test_every_allowed_drop_keeps_tree_valid(sample_tree):
    recalc = OrderRecalculator()
    checked = 0
    for dragged, target in all_drops(sample_tree):
        store = InMemoryPageStore.from_tree(sample_tree)
        mutation = recalc.compute(sample_tree, dragged, target)
        result = store.commit(mutation)
        assert result.success, (dragged, target, result.message)

        after = store.fetch_tree()
        assert after.validate(max_depth=2) == [], (dragged, target)
        assert len(after) == len(sample_tree)
        moved = after.get(dragged)
        assert moved.parent_id == mutation.parent_id
        assert moved.section_id == mutation.section_id
        assert after.descendant_ids(dragged) == sample_tree.descendant_ids(dragged)

        siblings = ids(after.sibling_list(dragged))
        if isinstance(target, RowTarget):
            pos = siblings.index(dragged)
            if target.intent is DropIntent.ABOVE:
                assert siblings[pos + 1] == target.target_id, (dragged, target, siblings)
            elif target.intent is DropIntent.BELOW:
                assert siblings[pos - 1] == target.target_id, (dragged, target, siblings)
            else:
                assert siblings[-1] == dragged
        else:
            assert siblings[-1] == dragged
        checked += 1
    assert checked > 100


def test_sequential_drops_keep_orders_distinct(sample_tree):
    store = InMemoryPageStore.from_tree(sample_tree)
    recalc = OrderRecalculator()
    for dragged, target in list(all_drops(sample_tree))[::7]:
        tree = store.fetch_tree()
        if dragged not in tree:
            continue
        if isinstance(target, RowTarget):
            if target.target_id not in tree or is_cycle_target(tree, dragged, target.target_id):
                continue
            if target.intent not in reachable_intents(DropZoneClassifier(), tree, dragged, target.target_id):
                continue
        result = store.commit(recalc.compute(tree, dragged, target))
        assert result.success, result.message
        assert store.fetch_tree().validate(max_depth=2) == []


def test_add_page_appends(store):
    result = store.add_page("New", parent_id="b")
    assert result.success
    new_id = result.details["node_id"]
    tree = store.fetch_tree()
    assert ids(tree.children_of("b"))[-1] == new_id
    assert tree.get(new_id).order == 2


def test_add_root_page_with_section(store):
    result = store.add_page("Top", section_id="s2", page_id="top")
    assert result.success
    assert store.fetch_tree().get("top").section_id == "s2"


def test_add_page_refusals(store):
    assert not store.add_page("Deep", parent_id="b1x").success
    assert not store.add_page("Lost", parent_id="ghost").success
    assert not store.add_page("Dup", page_id="a").success


def test_delete_page_promotes_children(store):
    result = store.delete_page("b")
    assert result.success
    assert result.details["promoted"] == 2
    tree = store.fetch_tree()
    assert "b" not in tree
    assert ids(tree.roots) == ["a", "c", "d", "b1", "b2"]
    assert [n.order for n in tree.roots] == [0, 1, 2, 3, 4]
    assert tree.level_of("b1x") == 1


def test_delete_unknown_page(store):
    assert not store.delete_page("ghost").success
