"""Catalog domain - Employees, services, offerings and days off"""
