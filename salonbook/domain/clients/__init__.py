"""Clients domain - Client records and Telegram linking"""
