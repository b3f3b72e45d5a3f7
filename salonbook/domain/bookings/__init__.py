"""Bookings domain - reservations and slot availability"""
