"""Quotes domain - estimates, public links and conversion to appointments"""
