"""Point of sale: checkout transactions, payments and receipts"""
