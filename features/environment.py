"""
Behave environment configuration

Scenario attributes (tree, anchor, coordinator, result) are scoped to the
scenario by behave itself; only engine settings and log indentation need
resetting here.
"""

from textanchor.config import AnchorConfig
from textanchor.logging_config import IndentState


def before_scenario(context, scenario):
    """Run before each scenario"""
    context.anchor_config = AnchorConfig()
    IndentState.reset()
