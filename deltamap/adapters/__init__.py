"""Adapter contract and implementations.

The repository engine only talks to :class:`AdapterInterface`; concrete
stores such as :mod:`deltamap.adapters.sqlite_adapter` plug in behind it.
"""
