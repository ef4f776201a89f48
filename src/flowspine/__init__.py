"""flow-spine: Sankey flow-diagram aggregation over an analytic store."""

__version__ = "0.1.0"
