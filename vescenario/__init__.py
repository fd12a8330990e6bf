"""
VE Scenario Viewer configuration

Loads the viewer's category, scenario (input factor) and output metric tables
into an immutable, cross-referenced model, reporting every inconsistency in
a single pass.
"""

__version__ = "0.1.0"
