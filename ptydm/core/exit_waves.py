# -*- coding: utf-8 -*-
"""
Persistent exit-wave state of the difference map.

The state is a (mode, block) matrix of cells. A cell is either
:py:data:`UNINITIALIZED` or a :py:class:`Field` holding the complex
exit-wave stack of the block for that mode.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""

__all__ = ['ExitWaveState', 'Field', 'UNINITIALIZED']


class _Uninitialized(object):

    def __repr__(self):
        return 'UNINITIALIZED'

    def __bool__(self):
        return False

UNINITIALIZED = _Uninitialized()


class Field(object):
    """
    Initialized cell: wraps the exit-wave array.
    """
    __slots__ = ('data',)

    def __init__(self, data):
        self.data = data

    def __repr__(self):
        return 'Field(%s %s)' % (str(self.data.shape), str(self.data.dtype))


class ExitWaveState(object):
    """
    Exit-wave estimates ``psi_dash`` indexed by (mode, block).

    Carried by the caller from one iteration to the next.
    """

    def __init__(self, nmodes, nblocks):
        self.nmodes = nmodes
        self.nblocks = nblocks
        self.cells = [[UNINITIALIZED] * nblocks for _ in range(nmodes)]

    @property
    def shape(self):
        return (self.nmodes, self.nblocks)

    def cell(self, ll, jj):
        return self.cells[ll][jj]

    def is_initialized(self, ll, jj):
        return isinstance(self.cells[ll][jj], Field)

    @property
    def empty(self):
        return not any(self.is_initialized(ll, jj)
                       for ll in range(self.nmodes) for jj in range(self.nblocks))

    def __getitem__(self, key):
        ll, jj = key
        c = self.cells[ll][jj]
        if not isinstance(c, Field):
            raise ValueError('Exit wave of mode %d, block %d is not initialized' % (ll, jj))
        return c.data

    def __setitem__(self, key, data):
        ll, jj = key
        self.cells[ll][jj] = Field(data)

    def resolve(self, ll, jj, psi):
        """
        Current estimate of cell (ll, jj). An uninitialized cell is
        bootstrapped with `psi` first.
        """
        c = self.cells[ll][jj]
        if isinstance(c, Field):
            return c.data
        self.cells[ll][jj] = Field(psi)
        return psi

    def clear(self):
        """
        Reset every cell to uninitialized.
        """
        for ll in range(self.nmodes):
            for jj in range(self.nblocks):
                self.cells[ll][jj] = UNINITIALIZED

    def clear_block(self, jj):
        for ll in range(self.nmodes):
            self.cells[ll][jj] = UNINITIALIZED

    def transfer(self, jj, move):
        """
        Apply residency transfer `move` to every initialized cell of block `jj`.
        """
        for ll in range(self.nmodes):
            c = self.cells[ll][jj]
            if isinstance(c, Field):
                c.data = move(c.data)
