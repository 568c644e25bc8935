from typing import Union, Sequence
from pathlib import Path

import numpy as np
import numpy.typing as npt

DOUBLE_ARRAY = npt.NDArray[np.float64]

PATH = Union[Path, str]

F_ARRAY_LIKE = Sequence[float] | DOUBLE_ARRAY

REGION = tuple[int, int, int, int]
"""
A rectangular region of an image as (left, top, right, bottom) pixel bounds, right/bottom exclusive
"""

COLOR = tuple[int, int, int]
"""
An RGB colour triple with channels in [0, 255]
"""


