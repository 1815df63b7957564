"""Appointments domain - booking, availability and detailer assignment"""
