# accounting/__init__.py
"""
Accounting app - Double-entry bookkeeping for Bukubesar.

This app provides:
- Account: Chart of Accounts with hierarchy
- TransactionHeader: Journal transactions with posting workflow
- TransactionDetail: Debit/credit lines

Commands handle all mutations so header totals stay in step with details.
"""
