"""
repovend CLI package.

Commands are auto-discovered from ``repovend.cli.commands``; each module
provides ``SUMMARY``, ``register_args(parser)`` and ``main(args) -> int``.
"""
from ._output import OutputFormatter
from ._args import add_json_flag, add_root_dir_flag, add_snapshot_arg
from ._utils import get_root_dir

__all__ = [
    "OutputFormatter",
    "add_json_flag",
    "add_root_dir_flag",
    "add_snapshot_arg",
    "get_root_dir",
]
