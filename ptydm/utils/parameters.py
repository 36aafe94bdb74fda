# -*- coding: utf-8 -*-
"""\
Parameter definition.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""

__all__ = ['Param', 'asParam']


class Param(dict):
    """
    Convenience class: a dictionary that gives access to its keys
    through attributes.

    Note: dictionaries stored in this class are also automatically converted
    to Param objects:
    >>> p = Param()
    >>> p.x = {}
    >>> p
    Param({})

    While dict(p) returns a dictionary, it is not recursive, so it is better in this case
    to use p._to_dict(Recursive=True).
    """
    _display_items_as_attributes = True

    def __init__(self, __d__=None, **kwargs):
        """
        A Dictionary that enables access to its keys as attributes.
        Same constructor as dict.
        """
        dict.__init__(self)
        if __d__ is not None:
            self.update(__d__)
        self.update(kwargs)

    def __repr__(self):
        return "%s(%s)" % (self.__class__.__name__, dict.__repr__(self))

    def __getattr__(self, name):
        try:
            return self[name]
        except KeyError:
            raise AttributeError(name)

    def __setattr__(self, name, value):
        self[name] = value

    def __delattr__(self, name):
        try:
            del self[name]
        except KeyError:
            raise AttributeError(name)

    def copy(self, depth=0):
        """
        P.copy() -> A (recursive) copy of P with depth `depth`
        """
        d = Param(self)
        if depth > 0:
            for k, v in d.items():
                if isinstance(v, self.__class__):
                    d[k] = v.copy(depth - 1)
        return d

    def __dir__(self):
        """
        Defined to include the keys when using dir(). Useful for
        tab completion in e.g. ipython.
        """
        if self._display_items_as_attributes:
            return list(self.keys())
        return []

    def update(self, __d__=None, Convert=False, Replace=True, **kwargs):
        """
        Update Param - almost same behavior as dict.update, except
        that all dictionaries are converted to Param, and update
        is done recursively, in such a way that as little info is lost.

        additional Parameters:
        ----------------------
        Convert : bool (False)
                  If True, convert all dict-like values in self also to Param
        Replace : bool (True)
                  If False, values in self are not replaced by but
                  updated with the new values.
        """
        def _k_v_update(k, v):
            # If an element is itself a dict, convert it to Param
            if Convert and hasattr(v, 'keys'):
                v = Param(v)
            # If this key already exists and is already dict-like, update it
            if not Replace and hasattr(self.get(k, None), 'keys'):
                self[k].update(v)
            # Otherwise just replace it
            else:
                self[k] = v

        if __d__ is not None:
            if hasattr(__d__, 'keys'):
                for k, v in __d__.items():
                    _k_v_update(k, v)
            else:
                for (k, v) in __d__:
                    _k_v_update(k, v)

        for k, v in kwargs.items():
            _k_v_update(k, v)

    def _to_dict(self, Recursive=False):
        """
        Convert to dictionary (recursively if needed).
        """
        d = dict(self)
        if Recursive:
            for k, v in d.items():
                if isinstance(v, self.__class__):
                    d[k] = v._to_dict(Recursive)
        return d


def asParam(obj):
    """
    Convert the input to a Param.

    Parameters
    ----------
    obj : dict_like
        Input structure, in any format that can be converted to a Param.

    Returns
    -------
    out : Param
        The Param structure built from obj. No copy is done if the input
        is already a Param.
    """
    return obj if isinstance(obj, Param) else Param(obj)
