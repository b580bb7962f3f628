"""
Pulumi components for a two-instance AWS devbox.
"""

from devbox_infra.config import StackSettings, load_settings
from devbox_infra.stack import DevboxStack, create_stack, export_outputs

__all__ = [
    'StackSettings',
    'load_settings',
    'DevboxStack',
    'create_stack',
    'export_outputs',
]
