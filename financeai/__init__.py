"""
FinanceAI - Core Package

The bookkeeping core of a chat-based financial assistant: free-text
messages in, balanced double-entry journal entries and reports out.

DESIGN PRINCIPLES:
1. Rules classify → Ledger verifies → Reports read
2. Debits always equal credits
3. A rejected transaction changes nothing
4. Every step must be auditable
5. One set of books per conversation
"""

__version__ = "1.0.0"
__author__ = "FinanceAI Team"
