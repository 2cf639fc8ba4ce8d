"""VegScan shared code."""
