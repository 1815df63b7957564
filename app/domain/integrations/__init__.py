"""Outbound messaging integrations: Twilio credentials and delivery logs"""
