# npspline/maths/itemsarray.py
# MIT License
# Created on 2022-11-11
# Last update: 2026-10-18
# Author: Alain Bernard

"""
ItemsArray
==========

Base class for batches of fixed shape items (quaternions, 3×3 matrices...)
backed by a single NumPy array whose trailing dimensions are `_item_shape`.

A single item has an empty batch shape:

    >>> q = Quaternion.identity()
    >>> q.shape
    ()
    >>> Quaternion.identity((10,)).shape
    (10,)
"""

import numpy as np

from ..constants import bfloat

# ====================================================================================================
# ItemsArray
# ====================================================================================================

class ItemsArray:

    FLOAT = bfloat
    __array_priority__ = 10.0  # NumPy defers to ItemsArray in mixed operations
    __slots__ = ("_mat",)
    _item_shape = (3,)

    def __init__(self, mat, *, copy: bool = True):
        """
        Wrap an array-like whose trailing dimensions match `_item_shape`.

        Parameters
        ----------
        mat : array_like (..., *_item_shape)
            Items to wrap.
        copy : bool, default True
            Copy the input rather than keeping a view on it.

        Raises
        ------
        ValueError
            If the trailing dimensions can't be broadcasted to `_item_shape`.
        """
        mat = np.asarray(mat, dtype=self.FLOAT)

        item_ndim = len(self._item_shape)
        try:
            mat = np.broadcast_to(mat, mat.shape[:-item_ndim] + self._item_shape)
        except ValueError:
            raise ValueError(f"{type(self).__name__}> input shape {mat.shape} not broadcastable to item shape {self._item_shape}")

        self._mat = mat.copy() if copy else mat

    # ----------------------------------------------------------------------------------------------------
    # Dunder
    # ----------------------------------------------------------------------------------------------------

    def __repr__(self):
        return f"<{type(self).__name__}(shape={self.shape}, dtype={self._mat.dtype})>"

    def __array__(self, dtype=None, copy=None):
        return np.asarray(self._mat, dtype=dtype)

    # ----------------------------------------------------------------------------------------------------
    # Shape
    # ----------------------------------------------------------------------------------------------------

    @property
    def is_scalar(self):
        return self._mat.shape == self._item_shape

    def as_array(self, dtype=None) -> np.ndarray:
        """**View** on the internal array (no copy)."""
        return np.asarray(self._mat, dtype=dtype)

    @property
    def shape(self) -> tuple:
        """Batch shape, item shape excluded."""
        return self._mat.shape[:-len(self._item_shape)]

    # ----------------------------------------------------------------------------------------------------
    # Items
    # ----------------------------------------------------------------------------------------------------

    def __getitem__(self, key):
        if self.is_scalar:
            raise TypeError(f"{type(self).__name__}> a single item is not subscriptable")
        return type(self)(self._mat[key], copy=False)
