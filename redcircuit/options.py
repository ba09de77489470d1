"""Compiler options and their command-line style parser."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)


class BackendVariant(Enum):
    DIRECT = "direct"


_LONG_FLAGS = {
    "--optimize": "optimize",
    "--export": "export",
    "--io-only": "io_only",
    "--update": "update",
    "--export-dot": "export_dot_graph",
}

_SHORT_FLAGS = {
    "o": "optimize",
    "e": "export",
    "i": "io_only",
    "u": "update",
}


@dataclass
class CompilerOptions:
    """Flags controlling how a circuit is compiled and flushed back."""

    optimize: bool = False
    """Enable optimisation passes, which may take much longer to compile."""
    export: bool = False
    """Export the compiled graph."""
    io_only: bool = False
    """Only flush lamp, button, lever, pressure plate and trapdoor updates."""
    update: bool = False
    """Update every block in the input region after reset."""
    export_dot_graph: bool = False
    """Export a dot file of the graph after backend compile."""
    backend_variant: BackendVariant = BackendVariant.DIRECT

    @classmethod
    def parse(cls, text: str) -> CompilerOptions:
        """Parse flags such as ``--optimize`` or combined short flags like ``-io``.

        Unrecognised options are logged and ignored.
        """
        options = cls()
        for option in text.split():
            if option.startswith("--"):
                name = _LONG_FLAGS.get(option)
                if name is None:
                    logger.warning("Unrecognized option: %s", option)
                else:
                    setattr(options, name, True)
            elif option.startswith("-"):
                for char in option[1:]:
                    name = _SHORT_FLAGS.get(char.lower())
                    if name is None:
                        logger.warning("Unrecognized option: -%s", char)
                    else:
                        setattr(options, name, True)
            else:
                logger.warning("Unrecognized option: %s", option)
        return options