"""
Extensions that narrow or redirect what the lifecycle engine does.

Candidate filters, metadata selection, named systems and the declarative
configuration adapter built on top of them.
"""
