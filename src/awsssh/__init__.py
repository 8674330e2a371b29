"""Pick EC2 instances interactively and open SSH or SSM sessions to them."""

from .cli import main, run

__all__ = ["main", "run"]
__version__ = "0.1.0"
