"""Business settings key/value store"""
