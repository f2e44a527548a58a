"""Currency registry package.

Immutable registry snapshots, the process-wide shared registry, resolution of loose currency
references and classification queries.
"""
