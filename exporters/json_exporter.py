"""JSON exporter for module catalogs (machine-friendly format)."""

import json
from typing import Any, Dict, Sequence

from catalog.model import Module


def catalog_document(modules: Sequence[Module]) -> Dict[str, Any]:
    """Plain nested mapping of a catalog, shared by the JSON and YAML exporters."""
    data: Dict[str, Any] = {
        "modules": [module.to_dict() for module in modules],
    }
    return data


def to_json(modules: Sequence[Module], indent: int = 2) -> str:
    """
    Convert a module catalog to JSON format.

    Args:
        modules: Modules in discovery order.
        indent: JSON indentation level.

    Returns:
        JSON string representation of the catalog.
    """
    return json.dumps(catalog_document(modules), indent=indent)
