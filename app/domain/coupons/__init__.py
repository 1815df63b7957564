"""Coupons domain - rewards, targeting, conditions and POS promotions"""
