"""Domain modules: users, accounts, transactions, transfers, notifications, analytics."""
