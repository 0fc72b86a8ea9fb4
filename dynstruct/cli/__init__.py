#!/usr/bin/env python

import fire
from ._utils import log_params
from ._run import run, check_input
from ._simulate import simulate
from ._plot import plot


def cli():
    """
    Entry point for the dynstruct command line interface.
    """
    fire.Fire()


if __name__ == "__main__":
    fire.Fire()
