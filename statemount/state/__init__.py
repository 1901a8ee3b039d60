"""
State entity and registry module.

Defines the singleton State records, the ordered registry that fixes their
start order, and the substitution overlay applied when they are started.
"""
