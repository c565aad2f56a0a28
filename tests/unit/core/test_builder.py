"""Unit tests for hierarchy building."""

from record_tree.core.builder import build_hierarchy
from record_tree.core.models import MetadataTable, TreeNode


def _titles(node: TreeNode) -> list[str]:
    return [child.title for child in node.children]


def _shape(node: TreeNode) -> tuple:
    return (
        node.title,
        node.level,
        tuple(sorted(node.tooltip_data.items())),
        tuple(_shape(child) for child in node.children),
    )


class TestBuildHierarchy:
    def test_company_scenario(self, company_records, metadata):
        hierarchy = build_hierarchy(company_records, "Company", ["Dept", "Team"], metadata=metadata)

        root = hierarchy.root
        assert root.title == "Company"
        assert root.level == 0
        assert root.tooltip_data == {}
        assert _titles(root) == ["Eng", "Sales"]

        eng, sales = root.children
        assert _titles(eng) == ["Core", "Infra"]
        assert _titles(sales) == ["EMEA"]
        assert [c.level for c in eng.children] == [2, 2]

    def test_full_paths_follow_resolved_values(self):
        records = [{"A": "x", "B": "y", "C": "z"}]
        hierarchy = build_hierarchy(records, "R", ["A", "B", "C"])

        node = hierarchy.root
        path = []
        while node.children:
            node = node.children[0]
            path.append(node.title)
        assert path == ["x", "y", "z"]

    def test_records_sharing_a_prefix_merge(self):
        records = [
            {"A": "x", "B": "1"},
            {"A": "x", "B": "2"},
            {"A": "x", "B": "1"},
        ]
        hierarchy = build_hierarchy(records, "R", ["A", "B"])

        assert _titles(hierarchy.root) == ["x"]
        assert _titles(hierarchy.root.children[0]) == ["1", "2"]

    def test_merge_is_case_sensitive(self):
        records = [{"A": "Eng"}, {"A": "eng"}]
        hierarchy = build_hierarchy(records, "R", ["A"])
        assert _titles(hierarchy.root) == ["Eng", "eng"]

    def test_empty_value_is_not_placed(self):
        records = [
            {"Dept": "", "Team": "Ghost"},
            {"Dept": "Eng", "Team": "Core"},
        ]
        hierarchy = build_hierarchy(records, "Company", ["Dept", "Team"])

        assert _titles(hierarchy.root) == ["Eng"]
        assert all(node.title for node in hierarchy.root.walk())
        assert "Ghost" not in [node.title for node in hierarchy.root.walk()]

    def test_gap_truncates_deeper_levels(self):
        records = [{"A": "x", "B": None, "C": "deep"}]
        hierarchy = build_hierarchy(records, "R", ["A", "B", "C"])

        (x,) = hierarchy.root.children
        assert x.children == []
        assert hierarchy.node_count() == 2

    def test_ragged_tree(self):
        records = [
            {"A": "x", "B": "1"},
            {"A": "y"},
        ]
        hierarchy = build_hierarchy(records, "R", ["A", "B"])
        x, y = hierarchy.root.children
        assert _titles(x) == ["1"]
        assert y.children == []

    def test_no_grouping_columns_gives_bare_root(self, company_records):
        hierarchy = build_hierarchy(company_records, "Company", [])
        assert hierarchy.root.title == "Company"
        assert hierarchy.root.children == []

    def test_no_root_value_gives_bare_root(self, company_records):
        hierarchy = build_hierarchy(company_records, "", ["Dept"])
        assert hierarchy.root.children == []

    def test_malformed_records_are_skipped(self):
        records = [None, "junk", {"A": "x"}]
        hierarchy = build_hierarchy(records, "R", ["A"])  # type: ignore[list-item]
        assert _titles(hierarchy.root) == ["x"]


class TestTooltipData:
    def test_captured_at_creation(self, company_records, metadata):
        hierarchy = build_hierarchy(
            company_records, "Company", ["Dept", "Team"], {1: ["Manager"]}, metadata
        )
        eng = hierarchy.root.find_child("Eng")
        assert eng.tooltip_data == {"Manager": "Alice"}

    def test_first_write_wins_on_merge(self, company_records, metadata):
        hierarchy = build_hierarchy(
            company_records, "Company", ["Dept", "Team"], {1: ["Manager"]}, metadata
        )
        # the second Eng record has Manager Bob
        assert hierarchy.root.find_child("Eng").tooltip_data["Manager"] == "Alice"
        assert hierarchy.root.find_child("Sales").tooltip_data["Manager"] == "Carol"

    def test_only_configured_level_gets_tooltips(self, company_records, metadata):
        hierarchy = build_hierarchy(
            company_records, "Company", ["Dept", "Team"], {2: ["Manager"]}, metadata
        )
        eng = hierarchy.root.find_child("Eng")
        assert eng.tooltip_data == {}
        assert eng.find_child("Infra").tooltip_data == {"Manager": "Bob"}

    def test_empty_tooltip_values_are_omitted(self):
        records = [{"A": "x", "Note": ""}]
        hierarchy = build_hierarchy(records, "R", ["A"], {1: ["Note", "Missing"]})
        assert hierarchy.root.children[0].tooltip_data == {}


class TestIdempotence:
    def test_same_inputs_same_tree(self, company_records, metadata):
        args = (company_records, "Company", ["Dept", "Team"], {1: ["Manager"]}, metadata)
        first = build_hierarchy(*args)
        second = build_hierarchy(*args)

        assert _shape(first.root) == _shape(second.root)
        assert first.to_dict() == second.to_dict()
        assert first.root is not second.root

    def test_to_dict_uses_tooltip_data_key(self, company_records, metadata):
        data = build_hierarchy(
            company_records, "Company", ["Dept"], {1: ["Manager"]}, metadata
        ).to_dict()
        assert data[0]["title"] == "Company"
        assert data[0]["children"][0] == {
            "title": "Eng",
            "level": 1,
            "tooltipData": {"Manager": "Alice"},
        }


def test_unknown_columns_default_to_direct():
    hierarchy = build_hierarchy([{"A": "x"}], "R", ["A"], metadata=MetadataTable())
    assert _titles(hierarchy.root) == ["x"]
