"""
samples.py - Pixel sample encodings declared by BITPIX.

FITS stores every sample big-endian.  Integer encodings are two's
complement except 8-bit, which is unsigned; negative BITPIX values
mean IEEE-754 floats of that width.

    BITPIX    kind      numpy dtype
    ------    -------   -----------
       8      UInt8     >u1
      16      Int16     >i2
      32      Int32     >i4
     -32      Float32   >f4
     -64      Float64   >f8

No unsigned correction is applied to 16-bit data.  Files that store
unsigned counts as Int16 carry BZERO=32768, and the linear rescale
already recovers the original values.
"""

from enum import Enum

import numpy as np

from fitsdecode.errors import UnsupportedSampleEncoding


class SampleKind(Enum):
    UINT8 = (8, ">u1")
    INT16 = (16, ">i2")
    INT32 = (32, ">i4")
    FLOAT32 = (-32, ">f4")
    FLOAT64 = (-64, ">f8")

    def __init__(self, bitpix: int, dtype: str):
        self.bitpix = bitpix
        self.dtype = np.dtype(dtype)

    @property
    def bytes_per_sample(self) -> int:
        return abs(self.bitpix) // 8

    @property
    def is_float(self) -> bool:
        return self.bitpix < 0

    @classmethod
    def from_bitpix(cls, bitpix: int) -> "SampleKind":
        """Map a BITPIX value to its encoding, raising for anything else."""
        for kind in cls:
            if kind.bitpix == bitpix:
                return kind
        raise UnsupportedSampleEncoding(bitpix)
