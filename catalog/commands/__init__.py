from catalog.commands.base import Command
from catalog.commands.product import (
    CreateProductCommand,
    RemoveProductCommand,
    UpdateProductCommand,
)
from catalog.commands.runner import CommandRunner, run_in_sequence

__all__ = [
    "Command",
    "CommandRunner",
    "CreateProductCommand",
    "RemoveProductCommand",
    "UpdateProductCommand",
    "run_in_sequence",
]
