"""
Reports app - read-only financial reports over posted transactions.

Computations live in services.py; exports.py renders them to PDF,
Excel and CSV.
"""
