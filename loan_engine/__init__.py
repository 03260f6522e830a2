"""
Loan Engine

Financial engine for microfinance loans: equal installment amortization,
outstanding balances, profit recognition, overdue cycles and loan status,
with all money math in Decimal.
"""

__version__ = "1.0.0"
