"""Scheduling domain - Slot generation, availability and the booking write path"""
