"""Unit tests for field value resolution."""

from record_tree.core.models import MetadataTable
from record_tree.core.resolver import Gap, Resolved, resolve, resolve_field

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _metadata() -> MetadataTable:
    return MetadataTable.from_dict(
        {
            "Owner": {"kind": "reference_non_indexed", "target_list": "People"},
            "Region": {
                "kind": "reference_indexed",
                "target_list": "Regions",
                "display_field": "Name",
            },
            "Region_x003a_Code": {"kind": "derived", "display_field": "Code"},
            "Status_x003a_Label": {"kind": "derived"},
            "Status": {},
        }
    )


class TestDirectColumns:
    def test_returns_raw_string(self):
        assert resolve({"Dept": "Eng"}, "Dept", MetadataTable()) == "Eng"

    def test_unknown_column_is_treated_as_direct(self):
        result = resolve_field({"Dept": "Eng"}, "Dept", _metadata())
        assert result == Resolved("Eng")

    def test_number_is_rendered_as_string(self):
        assert resolve({"Year": 2024}, "Year", MetadataTable()) == "2024"

    def test_missing_and_empty_are_gaps(self):
        assert isinstance(resolve_field({}, "Dept", MetadataTable()), Gap)
        assert isinstance(resolve_field({"Dept": ""}, "Dept", MetadataTable()), Gap)
        assert isinstance(resolve_field({"Dept": None}, "Dept", MetadataTable()), Gap)
        assert resolve({"Dept": ""}, "Dept", MetadataTable()) == ""

    def test_nested_object_on_direct_column_is_a_gap(self):
        result = resolve_field({"Dept": {"Title": "Eng"}}, "Dept", MetadataTable())
        assert isinstance(result, Gap)


class TestReferenceColumns:
    def test_non_indexed_reads_expanded_title(self):
        record = {"Owner": {"Title": "Alice", "Id": 7}}
        assert resolve(record, "Owner", _metadata()) == "Alice"

    def test_indexed_uses_configured_display_field(self):
        record = {"Region": {"Name": "North"}, "RegionId": 3}
        assert resolve(record, "Region", _metadata()) == "North"

    def test_flattened_key_wins_over_expansion(self):
        record = {"Owner/Title": "Flat", "Owner": {"Title": "Nested"}}
        assert resolve(record, "Owner", _metadata()) == "Flat"

    def test_missing_expansion_is_a_gap(self):
        result = resolve_field({"OwnerId": 7}, "Owner", _metadata())
        assert isinstance(result, Gap)
        assert "Owner" in result.reason

    def test_missing_display_field_is_a_gap(self):
        result = resolve_field({"Owner": {"Email": "a@x"}}, "Owner", _metadata())
        assert isinstance(result, Gap)


class TestDerivedColumns:
    def test_reads_through_base_reference(self):
        record = {"Region": {"Name": "North", "Code": "N"}}
        assert resolve(record, "Region_x003a_Code", _metadata()) == "N"

    def test_undeclared_derived_column_uses_base_display_field(self):
        record = {"Region": {"Name": "North"}}
        assert resolve(record, "Region_x003a_Other", _metadata()) == "North"

    def test_base_without_metadata_is_a_gap(self):
        result = resolve_field({"Team": {"Title": "x"}}, "Team_x003a_Title", _metadata())
        assert isinstance(result, Gap)

    def test_base_that_is_not_a_reference_is_a_gap(self):
        record = {"Status": {"Title": "Open"}}
        result = resolve_field(record, "Status_x003a_Label", _metadata())
        assert isinstance(result, Gap)
        assert "not a known reference" in result.reason


class TestNeverRaises:
    def test_non_mapping_record_yields_gap(self):
        result = resolve_field(None, "Dept", MetadataTable())  # type: ignore[arg-type]
        assert isinstance(result, Gap)
        assert resolve(None, "Dept", MetadataTable()) == ""  # type: ignore[arg-type]
