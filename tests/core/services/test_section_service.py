from pagetree_toolkit.core.models import PageNode, PageTree, Section
from pagetree_toolkit.core.services.section_service import SectionService, group_by_section


def test_add_section():
    service = SectionService()
    result = service.add_section("  Guides ")
    assert result.success
    section = result.details["section"]
    assert section.name == "Guides"
    assert service.list_sections() == [section]
    assert section.id in service


def test_blank_names_rejected(sample_sections):
    service = SectionService(sample_sections)
    assert not service.add_section("   ").success
    assert not service.add_section(None).success
    assert not service.rename_section("s1", "").success
    assert service.get("s1").name == "Getting started"


def test_rename_section(sample_sections):
    service = SectionService(sample_sections)
    result = service.rename_section("s2", "API reference")
    assert result.success
    assert service.get("s2") == Section("s2", "API reference")
    assert [s.id for s in service.list_sections()] == ["s1", "s2"]


def test_rename_unchanged_and_unknown(sample_sections):
    service = SectionService(sample_sections)
    unchanged = service.rename_section("s1", "Getting started")
    assert unchanged.success
    assert unchanged.message == "Section name unchanged."
    assert not service.rename_section("ghost", "X").success


def test_remove_section(sample_sections):
    service = SectionService(sample_sections)
    assert service.remove_section("s1").success
    assert "s1" not in service
    assert service.get("s1") is None
    assert not service.remove_section("s1").success


def test_group_by_section(sample_tree, sample_sections):
    groups = group_by_section(sample_tree, sample_sections)
    assert [g.section.id if g.section else None for g in groups] == [None, "s1", "s2"]
    assert [p.id for p in groups[0].pages] == ["a", "b"]
    assert [p.id for p in groups[1].pages] == ["c", "d"]
    assert groups[2].pages == []


def test_group_by_section_unknown_section_falls_back():
    tree = PageTree([PageNode("x", order=0, section_id="removed"), PageNode("y", order=1)])
    groups = group_by_section(tree, [])
    assert len(groups) == 1
    assert [p.id for p in groups[0].pages] == ["x", "y"]
