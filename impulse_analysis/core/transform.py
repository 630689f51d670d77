"""
Radix-2 FFT for the impulse response analyzer.

Table-driven Cooley-Tukey transform. One :class:`FFTPlan` per transform
size holds the bit-reversal permutation and the twiddle factors; plans
are cached and read-only, so concurrent analyses can share them.
"""

from functools import lru_cache

import numpy as np

from impulse_analysis.utils.errors import TransformError


def is_power_of_two(n: int) -> bool:
    """Return True for 1, 2, 4, 8, ..."""
    return n > 0 and (n & (n - 1)) == 0


class FFTPlan:
    """
    Precomputed tables for an N-point transform.

    Attributes:
        size: Transform length N
        reverse_table: Bit-reversed index for every position
        cos_table: cos(-2*pi*k/N) for k in [0, N/2)
        sin_table: sin(-2*pi*k/N) for k in [0, N/2)
    """

    def __init__(self, size: int):
        if not is_power_of_two(size):
            raise TransformError(
                f"FFT size must be a power of 2, got {size}",
                real_shape=(size,),
            )
        self.size = size
        self.reverse_table = self._build_reverse_table(size)

        angles = -2.0 * np.pi * np.arange(size // 2) / size
        self.cos_table = np.cos(angles)
        self.sin_table = np.sin(angles)

        for table in (self.reverse_table, self.cos_table, self.sin_table):
            table.flags.writeable = False

    @staticmethod
    def _build_reverse_table(size: int) -> np.ndarray:
        # Each doubling of `limit` mirrors the known prefix with the next bit set.
        table = np.zeros(size, dtype=np.intp)
        limit = 1
        bit = size >> 1
        while limit < size:
            table[limit:2 * limit] = table[:limit] + bit
            limit <<= 1
            bit >>= 1
        return table

    def execute(self, real: np.ndarray, imag: np.ndarray) -> None:
        """Transform ``real``/``imag`` in place along the last axis."""
        n = self.size
        real[...] = real[..., self.reverse_table]
        imag[...] = imag[..., self.reverse_table]

        batch = real.shape[:-1]
        step = 1
        while step < n:
            jump = step << 1
            # Twiddles for this stage are every (n / jump)-th table entry.
            stride = n // jump
            w_real = self.cos_table[::stride][:step]
            w_imag = self.sin_table[::stride][:step]

            blocks_real = real.reshape(batch + (n // jump, jump))
            blocks_imag = imag.reshape(batch + (n // jump, jump))
            top_real = blocks_real[..., :step]
            top_imag = blocks_imag[..., :step]
            bottom_real = blocks_real[..., step:]
            bottom_imag = blocks_imag[..., step:]

            temp_real = w_real * bottom_real - w_imag * bottom_imag
            temp_imag = w_real * bottom_imag + w_imag * bottom_real

            bottom_real[...] = top_real - temp_real
            bottom_imag[...] = top_imag - temp_imag
            top_real += temp_real
            top_imag += temp_imag

            step = jump


@lru_cache(maxsize=32)
def get_plan(size: int) -> FFTPlan:
    """Return the shared plan for ``size``-point transforms."""
    return FFTPlan(size)


def fft(real: np.ndarray, imag: np.ndarray) -> None:
    """
    In-place complex FFT over the last axis.

    Leading axes are a batch of independent transforms (e.g. frames).
    Both arrays are overwritten with the transformed values.

    Args:
        real: Real parts, contiguous writable float64 array
        imag: Imaginary parts, same shape and dtype as ``real``

    Raises:
        TransformError: Shapes differ, length is not a power of two,
            or the buffers cannot be transformed in place
    """
    if not isinstance(real, np.ndarray) or not isinstance(imag, np.ndarray):
        raise TransformError("Real and Imag buffers must be numpy arrays")
    if real.shape != imag.shape:
        raise TransformError(
            "Real and Imag arrays must be same length",
            real_shape=real.shape,
            imag_shape=imag.shape,
        )
    if real.ndim == 0 or not is_power_of_two(real.shape[-1]):
        raise TransformError(
            "Size must be power of 2",
            real_shape=real.shape,
            imag_shape=imag.shape,
        )
    for name, buf in (("real", real), ("imag", imag)):
        if buf.dtype != np.float64 or not buf.flags.c_contiguous or not buf.flags.writeable:
            raise TransformError(
                f"{name} buffer must be a writable, C-contiguous float64 array",
                real_shape=real.shape,
                imag_shape=imag.shape,
            )

    get_plan(real.shape[-1]).execute(real, imag)


def magnitude_spectrum(signal: np.ndarray) -> np.ndarray:
    """
    Magnitude spectrum of a real signal (or a batch of frames).

    Args:
        signal: Shape (N,) or (frames, N), N a power of two

    Returns:
        np.ndarray: sqrt(re^2 + im^2) for bins 0..N/2 inclusive
    """
    real = np.array(signal, dtype=np.float64, copy=True, order="C")
    imag = np.zeros_like(real)

    fft(real, imag)

    bins = real.shape[-1] // 2 + 1
    return np.hypot(real[..., :bins], imag[..., :bins])
