# litfinder/_singletons.py
from functools import lru_cache
from typing import Tuple

from .catalog_build import load_catalog_seed
from .config import Candidate


@lru_cache(maxsize=1)
def get_catalog() -> Tuple[Candidate, ...]:
    # read-only for the lifetime of the process
    return tuple(load_catalog_seed())
