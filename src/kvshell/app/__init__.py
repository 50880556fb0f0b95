"""Shell application module for kvshell.

Module structure (each module hides a design decision):
- config.py: Runtime constants and launch options
- models.py: View state (log lines and terminal size)
- editor.py: Input line editing and command history
- program.py: The actor that owns view state and renders it
"""

from .config import ShellConfig
from .editor import InputLineEditor
from .models import ViewModel
from .program import Program

__all__ = [
    "InputLineEditor",
    "Program",
    "ShellConfig",
    "ViewModel",
]
