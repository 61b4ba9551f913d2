import pytest

from pagetree_toolkit.config import PageTreeSettings
from pagetree_toolkit.core.models import DropIntent
from pagetree_toolkit.core.services.drop_zone_service import DepthCeilings, DropZoneClassifier

H = 40.0


@pytest.fixture
def classifier():
    return DropZoneClassifier()


def test_ceilings_per_subtree_depth():
    assert DepthCeilings.for_subtree(0) == DepthCeilings(max_inside_level=1, max_beside_level=2)
    assert DepthCeilings.for_subtree(1) == DepthCeilings(max_inside_level=0, max_beside_level=1)
    assert DepthCeilings.for_subtree(2) == DepthCeilings(max_inside_level=-1, max_beside_level=0)
    assert DepthCeilings.for_subtree(0, max_depth=3).max_beside_level == 3


def test_three_zones_when_nesting_allowed(classifier):
    leaf = DepthCeilings.for_subtree(0)
    assert classifier.classify(0.0, H, 0, leaf) is DropIntent.ABOVE
    assert classifier.classify(9.99, H, 0, leaf) is DropIntent.ABOVE
    assert classifier.classify(10.0, H, 0, leaf) is DropIntent.INSIDE
    assert classifier.classify(20.0, H, 0, leaf) is DropIntent.INSIDE
    assert classifier.classify(29.99, H, 0, leaf) is DropIntent.INSIDE
    assert classifier.classify(30.0, H, 0, leaf) is DropIntent.BELOW
    assert classifier.classify(H, H, 0, leaf) is DropIntent.BELOW


def test_half_split_when_nesting_refused(classifier):
    leaf = DepthCeilings.for_subtree(0)
    # Level-2 row cannot take children
    assert classifier.classify(5.0, H, 2, leaf) is DropIntent.ABOVE
    assert classifier.classify(19.99, H, 2, leaf) is DropIntent.ABOVE
    assert classifier.classify(20.0, H, 2, leaf) is DropIntent.BELOW
    assert classifier.classify(35.0, H, 2, leaf) is DropIntent.BELOW


def test_dragged_subtree_lowers_ceilings(classifier):
    one_level = DepthCeilings.for_subtree(1)
    assert classifier.classify(20.0, H, 0, one_level) is DropIntent.INSIDE
    assert classifier.classify(15.0, H, 1, one_level) is DropIntent.ABOVE
    assert classifier.classify(20.0, H, 1, one_level) is DropIntent.BELOW
    assert classifier.classify(20.0, H, 2, one_level) is None

    two_levels = DepthCeilings.for_subtree(2)
    assert classifier.classify(20.0, H, 0, two_levels) is DropIntent.BELOW
    assert classifier.classify(20.0, H, 1, two_levels) is None


def test_offset_outside_row_is_clamped(classifier):
    leaf = DepthCeilings.for_subtree(0)
    assert classifier.classify(-12.0, H, 0, leaf) is DropIntent.ABOVE
    assert classifier.classify(H + 50, H, 0, leaf) is DropIntent.BELOW


def test_zero_height_row_has_no_intent(classifier):
    assert classifier.classify(0.0, 0.0, 0, DepthCeilings.for_subtree(0)) is None


def test_custom_edge_fraction():
    classifier = DropZoneClassifier(edge_fraction=0.3)
    leaf = DepthCeilings.for_subtree(0)
    assert classifier.classify(11.0, H, 0, leaf) is DropIntent.ABOVE
    assert classifier.classify(12.0, H, 0, leaf) is DropIntent.INSIDE
    assert classifier.classify(29.0, H, 0, leaf) is DropIntent.BELOW


@pytest.mark.parametrize("edge", [0.0, 0.5, 0.75, -0.1])
def test_edge_fraction_must_be_below_half(edge):
    with pytest.raises(ValueError):
        DropZoneClassifier(edge_fraction=edge)


def test_from_settings():
    classifier = DropZoneClassifier.from_settings(PageTreeSettings(max_depth=3, nest_edge_fraction=0.2))
    assert classifier.max_depth == 3
    assert classifier.edge_fraction == 0.2


def test_classify_row_uses_tree_levels(classifier, sample_tree):
    # Leaf over a level-2 row: two zones only
    assert classifier.classify_row(sample_tree, "a", "b1x", 20.0, H) is DropIntent.BELOW
    # Leaf over a level-1 row: may nest
    assert classifier.classify_row(sample_tree, "a", "b2", 20.0, H) is DropIntent.INSIDE
    # Depth-2 subtree fits beside roots only
    assert classifier.classify_row(sample_tree, "b", "a", 5.0, H) is DropIntent.ABOVE
    assert classifier.classify_row(sample_tree, "b", "c1", 5.0, H) is None
    # Depth-1 subtree may nest into a root
    assert classifier.classify_row(sample_tree, "c", "a", 20.0, H) is DropIntent.INSIDE


def test_classify_row_unknown_target(classifier, sample_tree):
    assert classifier.classify_row(sample_tree, "a", "ghost", 20.0, H) is None


def test_permits_rechecks_depth_against_tree(classifier, sample_tree):
    # Leaf "a": nests up to level 1, sits beside up to level 2
    assert classifier.permits(sample_tree, "a", "b1", DropIntent.INSIDE)
    assert not classifier.permits(sample_tree, "a", "b1x", DropIntent.INSIDE)
    assert classifier.permits(sample_tree, "a", "b1x", DropIntent.ABOVE)
    # "b" carries two levels below it
    assert not classifier.permits(sample_tree, "b", "c", DropIntent.INSIDE)
    assert classifier.permits(sample_tree, "b", "c", DropIntent.BELOW)
    assert not classifier.permits(sample_tree, "b", "c1", DropIntent.BELOW)
