"""YAML exporter for module catalogs."""

from typing import Sequence

import yaml

from catalog.model import Module
from .json_exporter import catalog_document


def to_yaml(modules: Sequence[Module]) -> str:
    """
    Convert a module catalog to YAML format.

    Key order of every record is preserved.
    """
    return yaml.safe_dump(
        catalog_document(modules),
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )
