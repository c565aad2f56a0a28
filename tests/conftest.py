"""Shared fixtures for record-tree tests."""

import json
from pathlib import Path

import pytest
import yaml

from record_tree.core.models import MetadataTable


@pytest.fixture
def company_records() -> list[dict]:
    """Dept/Team records with a reference-typed Manager column."""
    return [
        {"Dept": "Eng", "Team": "Core", "Manager": {"Title": "Alice"}},
        {"Dept": "Eng", "Team": "Infra", "Manager": {"Title": "Bob"}},
        {"Dept": "Sales", "Team": "EMEA", "Manager": {"Title": "Carol"}},
    ]


@pytest.fixture
def metadata() -> MetadataTable:
    return MetadataTable.from_dict(
        {
            "Dept": {"display_name": "Department"},
            "Team": {},
            "Manager": {
                "kind": "reference_non_indexed",
                "target_list": "People",
                "display_name": "Manager",
            },
        }
    )


@pytest.fixture
def config_dict() -> dict:
    return {
        "list_name": "Staff",
        "root_value": "Company",
        "grouping_columns": ["Dept", "Team"],
        "tooltip_fields": {1: ["Manager"]},
        "node_colors": {1: "#ff8800"},
        "columns": {
            "Dept": {"display_name": "Department"},
            "Manager": {"kind": "reference_non_indexed", "display_name": "Manager"},
        },
        "source": {"type": "file", "path": "records.json"},
    }


@pytest.fixture
def config_file(tmp_path: Path, config_dict: dict, company_records: list[dict]) -> Path:
    """A config file next to a JSON record file."""
    (tmp_path / "records.json").write_text(json.dumps(company_records))
    path = tmp_path / "record-tree.yaml"
    path.write_text(yaml.safe_dump(config_dict))
    return path
