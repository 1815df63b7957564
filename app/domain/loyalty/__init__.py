"""Loyalty points: append-only ledger, earning and redemption"""
