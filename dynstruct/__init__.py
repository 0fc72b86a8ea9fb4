from ._logging import logger
from . import data, io, inference, simulate, plot, cli
from .inference import Cavi
from .data import SnpData
from .version import __version__

__all__ = [
    "data",
    "io",
    "inference",
    "simulate",
    "plot",
    "cli",
    "Cavi",
    "SnpData",
]
