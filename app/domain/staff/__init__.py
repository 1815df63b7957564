"""Roles, permission overrides and employees"""
