"""bulletgraph: Turn indented bullet outlines into Graphviz diagrams."""

__version__ = "0.1.0"
