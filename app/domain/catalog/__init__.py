"""Catalog domain - products, services and pricing tiers"""
