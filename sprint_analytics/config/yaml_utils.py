"""YAML utilities for configuration processing.

Mappings are loaded as case-insensitive ordered dictionaries so that
``Goal Achievement Threshold`` and ``goal achievement threshold`` address
the same setting.
"""

import yaml
from pydicti import odicti


def ordered_load(stream, loader=yaml.SafeLoader, object_pairs_hook=odicti):
    """
    Load YAML mappings as ordered, case-insensitive dictionaries.
    """

    def construct_mapping(loader, node, _deep=False):
        loader.flatten_mapping(node)
        return object_pairs_hook(loader.construct_pairs(node))

    # Subclass so the caller's loader keeps its own constructor table
    constructors = dict(getattr(loader, "yaml_constructors", {}))
    OrderedLoader = type(
        "OrderedLoader", (loader,), {"yaml_constructors": constructors}
    )
    OrderedLoader.add_constructor(
        yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG, construct_mapping
    )

    return yaml.load(stream, OrderedLoader)
