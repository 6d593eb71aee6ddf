"""
Per-call random generators.

An agent keeps one SeedSequence and spawns a fresh numpy Generator for each
decision, so repeated runs with the same seed replay the same choices and
concurrent decisions never share generator state.
"""
from __future__ import annotations

import threading
from typing import Optional

import numpy as np


class GeneratorFactory:
    def __init__(self, seed: Optional[int] = None) -> None:
        self._seq = np.random.SeedSequence(seed)
        self._lock = threading.Lock()

    def spawn(self) -> np.random.Generator:
        with self._lock:
            child = self._seq.spawn(1)[0]
        return np.random.default_rng(child)
