# -*- coding: utf-8 -*-
"""\
Parameter descriptions and validation.

Parameters are declared in class docstrings, below a ``Defaults:`` line,
one ConfigParser section per parameter::

    [probe_inertia]
    default = 0.1
    type = float
    lowlim = 0.0
    uplim = 1.0
    help = Weight of the current probe estimate in the update

The :py:meth:`EvalDescriptor.parse_doc` decorator collects these sections
(including those of the base classes), attaches the description tree to
the class and renders ``cls.DEFAULT``.

This file is part of the PTYDM package.

    :copyright: Copyright 2024 by the PTYDM team, see AUTHORS.
    :license: see LICENSE for details.
"""

import ast
import textwrap
from collections import OrderedDict
from io import StringIO

from .parameters import Param


__all__ = ['Descriptor', 'EvalDescriptor', 'CODES']


class CODES(object):
    PASS = 1
    FAIL = 0
    UNKNOWN = 2
    MISSING = 3
    INVALID = 4

# ! Inverse message codes
CODE_LABEL = dict((v, k) for k, v in CODES.__dict__.items() if not k.startswith('_'))


class Descriptor(object):
    """
    Base class for parameter descriptions. Holds a tree of named
    children, each one with a dictionary of options.
    """

    def __init__(self, name, parent=None, separator='.'):
        #: Name of parameter
        self.name = name

        #: Parent parameter (:py:class:`Descriptor` type) if it has one.
        self.parent = parent

        #: Hierarchical tree of sub-Parameters.
        self.children = OrderedDict()

        self.separator = separator

        #: Attributes to the parameters.
        self.options = {}

    def new_child(self, name, options=None):
        """
        Create a new descendant and pass new options.

        If name contains separators, intermediate children are created.
        If name already exists, update options and return existing child.
        """
        if self.separator in name:
            first, rest = name.split(self.separator, 1)
            return self.new_child(first).new_child(rest, options)

        desc = self.children.get(name)
        if desc is None:
            desc = type(self)(name, parent=self, separator=self.separator)
            self.children[name] = desc
        if options is not None:
            desc.options.update(options)
        return desc

    def __getitem__(self, name):
        if self.separator in name:
            first, rest = name.split(self.separator, 1)
            return self.children[first][rest]
        return self.children[name]

    @property
    def path(self):
        """
        Return complete path from root of parameter tree.
        """
        if self.parent is None or self.parent.parent is None:
            return self.name
        return self.parent.path + self.separator + self.name

    def load_conf_parser(self, fbuffer, **kwargs):
        """
        Load Parameter defaults using Python's ConfigParser

        Each parameter occupies its own section.
        Keyword arguments are forwarded to `ConfigParser.RawConfigParser`
        """
        from configparser import RawConfigParser as Parser
        parser = Parser(**kwargs)
        parser.read_file(fbuffer)
        for sec in parser.sections():
            self.new_child(name=sec, options=dict(parser.items(sec)))
        return parser

    def from_string(self, s, strict=False, **kwargs):
        """
        Load Parameter from string using Python's ConfigParser
        """
        s = textwrap.dedent(s)
        return self.load_conf_parser(StringIO(s), strict=strict, **kwargs)


class EvalDescriptor(Descriptor):
    """
    Parameter class to store metadata for all parameters (default, limits, documentation, etc.)
    """
    _typemap = {'int': 'int',
                'float': 'float',
                'complex': 'complex',
                'str': 'str',
                'bool': 'bool',
                'tuple': 'tuple',
                'list': 'list',
                'array': 'ndarray',
                'Param': 'Param',
                'None': 'NoneType',
                '': 'NoneType'}

    _evaltypes = ['int', 'float', 'tuple', 'list', 'complex']
    _limtypes = ['int', 'float']

    @property
    def default(self):
        """
        Default value as a Python type
        """
        default = str(self.options.get('default', ''))
        default = default if default else None

        if 'Param' in self.type:
            out = Param()
        elif default is None or default.lower() == 'none':
            out = None
        elif default.lower() == 'true':
            out = True
        elif default.lower() == 'false':
            out = False
        elif self.is_evaluable:
            out = ast.literal_eval(default)
        else:
            out = default.strip('"').strip("'")
        return out

    @property
    def is_evaluable(self):
        return any(t in self._evaltypes for t in self.type)

    @property
    def type(self):
        """
        List of possible data types.
        """
        types = self.options.get('type', 'Param' if self.children else '')
        tm = self._typemap
        return [tm.get(x.strip(), x.strip()) for x in types.split(',')]

    @property
    def limits(self):
        """
        (lower, upper) limits if applicable. (None, None) otherwise
        """
        ll = self.options.get('lowlim', None)
        ul = self.options.get('uplim', None)
        cast = int if 'int' in self.type and 'float' not in self.type else float
        lowlim = cast(ll) if ll else None
        uplim = cast(ul) if ul else None
        return lowlim, uplim

    @property
    def help(self):
        return self.options.get('help', '')

    @property
    def doc(self):
        """
        Long documentation.
        """
        return self.options.get('doc', '')

    def _check_type(self, value):
        names = self.type
        if value is None:
            return 'NoneType' in names
        tname = type(value).__name__
        if tname in names:
            return True
        # bool is a subclass of int but should not pass as a number
        if isinstance(value, bool):
            return False
        if 'float' in names and isinstance(value, (int, float)):
            return True
        if 'int' in names and hasattr(value, 'dtype') and value.dtype.kind in 'iu':
            return True
        if 'float' in names and hasattr(value, 'dtype') and value.dtype.kind in 'iuf':
            return True
        return False

    def check(self, pars):
        """
        Check that input parameter pars is consistent with parameter description.

        Returns
        -------
        A dictionary report using CODES values.
        """
        out = OrderedDict()
        for name, d in self.children.items():
            out[name] = {}
            if name not in pars:
                out[name]['name'] = CODES.MISSING
                continue
            value = pars[name]
            if not d._check_type(value):
                out[name]['type'] = CODES.INVALID
                continue
            out[name]['type'] = CODES.PASS
            if any(t in d._limtypes for t in d.type) and value is not None:
                lowlim, uplim = d.limits
                if lowlim is not None:
                    out[name]['lowlim'] = CODES.PASS if value >= lowlim else CODES.FAIL
                if uplim is not None:
                    out[name]['uplim'] = CODES.PASS if value <= uplim else CODES.FAIL
        for name in pars:
            if name not in self.children:
                out[name] = {'name': CODES.UNKNOWN}
        return out

    def validate(self, pars, raisecodes=(CODES.FAIL, CODES.INVALID, CODES.UNKNOWN)):
        """
        Check that the parameter structure `pars` matches the documented
        constraints for this node.

        The function raises a RuntimeError if one of the code in the list
        `raisecodes` has been found.
        """
        from .verbose import logger
        import logging

        _logging_levels = dict(
            PASS=logging.DEBUG,
            FAIL=logging.CRITICAL,
            UNKNOWN=logging.WARN,
            MISSING=logging.DEBUG,
            INVALID=logging.ERROR
        )

        raise_reasons = []
        for ep, v in self.check(pars).items():
            for tocheck, outcome in v.items():
                logger.log(_logging_levels[CODE_LABEL[outcome]], '%-50s %-20s %7s' % (ep, tocheck, CODE_LABEL[outcome]))
                if outcome in raisecodes:
                    raise_reasons.append('%s - %s' % (ep, tocheck))
        if raise_reasons:
            raise RuntimeError('Parameter validation failed:\n  ' + '\n  '.join(raise_reasons))

    def make_default(self):
        """
        Creates a default parameter structure.

        Returns
        -------
        pars : Param
            A parameter branch as Param.
        """
        out = Param()
        for name, d in self.children.items():
            out[name] = d.make_default() if d.children else d.default
        return out

    def parse_doc(self, name=None, recursive=True):
        """
        Decorator to parse docstring and automatically attach new parameters.
        The parameter section is identified by a line starting with the word "Defaults:"

        Parameters
        ----------
        name: str
            The descendant name under which all parameters will be held. If None, use self
        recursive: bool
            Whether or not to traverse the docstring of base classes.
        """
        return lambda cls: self._parse_doc_decorator(name, cls, recursive)

    def _parse_doc_decorator(self, name, cls, recursive):
        """
        Actual decorator returned by parse_doc.
        """
        desc = self if name is None else self.new_child(name)
        desc.options['type'] = 'Param'
        desc.from_string(self._extract_doc_from_class(cls, recursive))

        from weakref import ref
        cls._descriptor = ref(desc)

        # Render the defaults
        cls.DEFAULT = desc.make_default()
        return cls

    def _extract_doc_from_class(self, cls, recursive=True):
        """
        Utility method used recursively by _parse_doc_decorator to extract doc strings
        from all base classes and cobble the "Defaults" section.
        """
        if cls == object:
            return ''

        base_parameters = ''
        if recursive:
            for bcls in cls.__bases__:
                base_parameters += self._extract_doc_from_class(bcls)

        docstring = cls.__doc__ if cls.__doc__ is not None else ' '

        # Because of indentation it is safer to work line by line
        doclines = docstring.splitlines()
        for n, line in enumerate(doclines):
            if line.strip().startswith('Defaults:'):
                break
        else:
            return base_parameters
        parameter_string = textwrap.dedent('\n'.join(doclines[n + 1:]))

        return base_parameters + '\n' + parameter_string
