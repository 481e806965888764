"""Appointment scheduling backend."""
