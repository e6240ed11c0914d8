"""
Analysis package for the Mapbox Choropleth Examples

Figure builders and the registry of runnable examples.
"""

from .examples import EXAMPLES, run_example, run_examples
from .map_choropleth_mapbox import (
    create_express_choropleth,
    create_graph_objects_choropleth,
    save_figure,
)

__all__ = [
    "EXAMPLES",
    "run_example",
    "run_examples",
    "create_graph_objects_choropleth",
    "create_express_choropleth",
    "save_figure",
]
