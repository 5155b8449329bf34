"""Notifications domain - Appointment events to Telegram and email messages"""
